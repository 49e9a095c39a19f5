"""
Feature Store - sliding-window aggregate queries per account
Windows are half-open [start, end): the scored transaction never sees itself
"""
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Set

import pandas as pd

from .constants import DEFAULT_RETENTION
from .entities import Transaction

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = [
    "transaction_id",
    "event_time",
    "amount",
    "merchant_id",
    "country",
    "counterparty_id"
]


@dataclass(frozen=True)
class NetworkRisk:
    """Counterparty risk for one account over a window"""
    score: float = 0.0
    associated_fraud_count: int = 0


def to_epoch(ts: datetime) -> float:
    """UTC epoch seconds (naive datetimes are read as UTC)"""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.timestamp()


def history_row(transaction: Transaction) -> Dict:
    """Flatten a transaction into the row stored in account history"""
    return {
        "transaction_id": transaction.transaction_id,
        "event_time": to_epoch(transaction.created_at),
        "amount": float(transaction.amount),
        "merchant_id": transaction.merchant_id,
        "country": transaction.country,
        "counterparty_id": transaction.destination_account_id,
    }


class FeatureStore(ABC):
    """Query contract consumed by the feature extractor"""

    @abstractmethod
    async def count_in_window(self, account_id: str, start: datetime, end: datetime) -> int:
        pass

    @abstractmethod
    async def sum_amount_in_window(self, account_id: str, start: datetime, end: datetime) -> float:
        pass

    @abstractmethod
    async def variance_in_window(self, account_id: str, start: datetime, end: datetime) -> float:
        pass

    @abstractmethod
    async def distinct_merchants_in_window(self, account_id: str, start: datetime, end: datetime) -> int:
        pass

    @abstractmethod
    async def distinct_countries_in_window(self, account_id: str, start: datetime, end: datetime) -> int:
        pass

    @abstractmethod
    async def network_risk_in_window(self, account_id: str, start: datetime, end: datetime) -> NetworkRisk:
        pass

    @abstractmethod
    async def record(self, transaction: Transaction) -> None:
        """Append a scored transaction to its source account history"""
        pass

    @abstractmethod
    async def mark_fraudulent(self, account_id: str) -> None:
        """Flag an account as confirmed fraudulent (feeds network risk)"""
        pass

    @property
    def backend(self) -> str:
        return type(self).__name__


class HistoryFeatureStore(FeatureStore):
    """
    Aggregates computed in pandas over an account history slice
    Subclasses only decide where the rows live
    """

    @abstractmethod
    async def _history(self, account_id: str, start: datetime, end: datetime) -> pd.DataFrame:
        pass

    @abstractmethod
    async def _flagged_among(self, account_ids: Iterable[str]) -> Set[str]:
        pass

    @staticmethod
    def _frame(rows: List[Dict]) -> pd.DataFrame:
        return pd.DataFrame(rows, columns=HISTORY_COLUMNS)

    async def count_in_window(self, account_id, start, end) -> int:
        history = await self._history(account_id, start, end)
        return int(len(history))

    async def sum_amount_in_window(self, account_id, start, end) -> float:
        history = await self._history(account_id, start, end)
        if history.empty:
            return 0.0
        return float(history["amount"].sum())

    async def variance_in_window(self, account_id, start, end) -> float:
        history = await self._history(account_id, start, end)
        if history.empty:
            return 0.0
        # Population variance: a single transaction has no spread
        return float(history["amount"].astype(float).var(ddof=0))

    async def distinct_merchants_in_window(self, account_id, start, end) -> int:
        history = await self._history(account_id, start, end)
        return int(history["merchant_id"].nunique())

    async def distinct_countries_in_window(self, account_id, start, end) -> int:
        history = await self._history(account_id, start, end)
        return int(history["country"].nunique())

    async def network_risk_in_window(self, account_id, start, end) -> NetworkRisk:
        history = await self._history(account_id, start, end)
        counterparties = set(history["counterparty_id"].dropna())
        if not counterparties:
            return NetworkRisk()

        flagged = await self._flagged_among(counterparties)
        return NetworkRisk(
            score=round(len(flagged) / len(counterparties), 4),
            associated_fraud_count=len(flagged)
        )


class InMemoryFeatureStore(HistoryFeatureStore):
    """
    Process-local store for development and tests
    History older than the retention window is pruned on write
    """

    def __init__(self, retention: timedelta = DEFAULT_RETENTION):
        self.retention = retention
        self._rows: Dict[str, List[Dict]] = defaultdict(list)
        self._flagged: Set[str] = set()

    async def _history(self, account_id, start, end) -> pd.DataFrame:
        lower, upper = to_epoch(start), to_epoch(end)
        rows = [
            row for row in self._rows.get(account_id, [])
            if lower <= row["event_time"] < upper
        ]
        return self._frame(rows)

    async def _flagged_among(self, account_ids) -> Set[str]:
        return {account_id for account_id in account_ids if account_id in self._flagged}

    async def record(self, transaction: Transaction) -> None:
        if not transaction.source_account_id:
            return

        rows = self._rows[transaction.source_account_id]
        if any(row["transaction_id"] == transaction.transaction_id for row in rows):
            return
        rows.append(history_row(transaction))

        newest = max(row["event_time"] for row in rows)
        cutoff = newest - self.retention.total_seconds()
        rows[:] = [row for row in rows if row["event_time"] >= cutoff]

    async def mark_fraudulent(self, account_id: str) -> None:
        self._flagged.add(account_id)
        logger.info(f"🚩 Account flagged as fraudulent: {account_id}")
