"""
Feature Engineering Logic
SINGLE SOURCE OF TRUTH for features
Used by both:
- Serving (scoring pipeline, /features endpoint)
- Training (feature columns, synthetic data)
"""

import asyncio
import logging
import math
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Optional, Tuple

from .constants import (
    KNOWN_CURRENCIES,
    KNOWN_TRANSACTION_TYPES,
    NETWORK_WINDOW,
    WINDOW_24H,
    WINDOW_7D
)
from .entities import FEATURE_COLUMNS, FeatureVector, Transaction
from .exceptions import DependencyDegradedError, InvalidInputError
from .store import FeatureStore

logger = logging.getLogger(__name__)


def vocabulary_index(value: Optional[str], vocabulary: List[str]) -> int:
    """Case-insensitive index into a known vocabulary, 0 for unknown"""
    if not value:
        return 0
    lowered = [entry.lower() for entry in vocabulary]
    try:
        return lowered.index(value.lower())
    except ValueError:
        return 0


class FeatureExtractor:
    """
    Builds one FeatureVector per transaction

    Transaction and calendar fields are read from the transaction.
    Behavioral, velocity and network groups are queried concurrently;
    a failing group yields its defaults instead of failing the request.
    """

    def __init__(self, store: FeatureStore, query_timeout_ms: Optional[float] = None):
        self.store = store
        self.query_timeout = query_timeout_ms / 1000 if query_timeout_ms else None

    @staticmethod
    def validate(transaction: Transaction) -> None:
        """Raise InvalidInputError for transactions that cannot be scored"""
        if not transaction.source_account_id or not transaction.source_account_id.strip():
            raise InvalidInputError(
                f"Transaction {transaction.transaction_id} has no source account",
                transaction.transaction_id
            )
        if not math.isfinite(transaction.amount) or transaction.amount < 0:
            raise InvalidInputError(
                f"Transaction {transaction.transaction_id} has invalid amount {transaction.amount}",
                transaction.transaction_id
            )

    async def extract_features(self, transaction: Transaction) -> FeatureVector:
        """
        Extract features for a single transaction

        Args:
            transaction: Ledger transaction to describe

        Returns:
            Fully populated FeatureVector (degraded groups listed)

        Raises:
            InvalidInputError: missing source account or negative amount
        """
        self.validate(transaction)

        account_id = transaction.source_account_id
        at = transaction.created_at_utc

        groups: Dict[str, Awaitable[Dict[str, Any]]] = {
            "behavioral": self._behavioral_features(account_id, at),
            "velocity": self._velocity_features(account_id, at),
            "network": self._network_features(account_id, at),
        }
        results = await asyncio.gather(
            *(self._run_group(name, coro, transaction.transaction_id) for name, coro in groups.items())
        )

        features: Dict[str, Any] = {
            "transaction_id": transaction.transaction_id,
            **self._transaction_features(transaction),
            **self._calendar_features(at),
        }
        degraded = []
        for name, values in results:
            if values is None:
                degraded.append(name)
            else:
                features.update(values)

        return FeatureVector(**features, degraded_groups=degraded)

    async def _run_group(
        self,
        name: str,
        coro: Awaitable[Dict[str, Any]],
        transaction_id: str
    ) -> Tuple[str, Optional[Dict[str, Any]]]:
        """Await one group; failures and timeouts degrade to defaults"""
        try:
            try:
                if self.query_timeout:
                    return name, await asyncio.wait_for(coro, timeout=self.query_timeout)
                return name, await coro
            except Exception as e:
                raise DependencyDegradedError(f"{name} features", e) from e
        except DependencyDegradedError as e:
            logger.warning(f"⚠️ {e} for transaction {transaction_id}, using defaults")
            return name, None

    @staticmethod
    def _transaction_features(transaction: Transaction) -> Dict[str, Any]:
        return {
            "amount": float(transaction.amount),
            "transaction_type_idx": vocabulary_index(transaction.transaction_type, KNOWN_TRANSACTION_TYPES),
            "currency_idx": vocabulary_index(transaction.currency, KNOWN_CURRENCIES),
            "has_geolocation": 1 if transaction.has_geolocation else 0,
        }

    @staticmethod
    def _calendar_features(at: datetime) -> Dict[str, Any]:
        day_of_week = at.isoweekday()
        return {
            "hour_of_day": at.hour,
            "day_of_week": day_of_week,
            "day_of_month": at.day,
            "month": at.month,
            "is_weekend": 1 if day_of_week in [6, 7] else 0,
        }

    async def _behavioral_features(self, account_id: str, at: datetime) -> Dict[str, Any]:
        day_start, week_start = at - WINDOW_24H, at - WINDOW_7D

        count_24h, count_7d, total_24h, total_7d, variance_7d = await asyncio.gather(
            self.store.count_in_window(account_id, day_start, at),
            self.store.count_in_window(account_id, week_start, at),
            self.store.sum_amount_in_window(account_id, day_start, at),
            self.store.sum_amount_in_window(account_id, week_start, at),
            self.store.variance_in_window(account_id, week_start, at),
        )

        return {
            "txn_count_24h": count_24h,
            "txn_count_7d": count_7d,
            "total_amount_24h": total_24h,
            "total_amount_7d": total_7d,
            "avg_amount_7d": total_7d / count_7d if count_7d else 0.0,
            "amount_variance_7d": variance_7d if count_7d else 0.0,
        }

    async def _velocity_features(self, account_id: str, at: datetime) -> Dict[str, Any]:
        start = at - WINDOW_24H

        frequency, amount, merchants, countries = await asyncio.gather(
            self.store.count_in_window(account_id, start, at),
            self.store.sum_amount_in_window(account_id, start, at),
            self.store.distinct_merchants_in_window(account_id, start, at),
            self.store.distinct_countries_in_window(account_id, start, at),
        )

        return {
            "velocity_frequency_24h": frequency,
            "velocity_amount_24h": amount,
            "unique_merchants_24h": merchants,
            "unique_countries_24h": countries,
        }

    async def _network_features(self, account_id: str, at: datetime) -> Dict[str, Any]:
        risk = await self.store.network_risk_in_window(account_id, at - NETWORK_WINDOW, at)
        return {
            "network_risk_score": risk.score,
            "network_associated_fraud_count": risk.associated_fraud_count,
        }

    @staticmethod
    def get_feature_columns() -> List[str]:
        """
        Returns list of feature column names
        Used by both training and serving pipelines
        """
        return list(FEATURE_COLUMNS)
