"""
Scoring Pipeline - cache check → extract → score → cache store → alert check
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import List, Optional

from feature_store.entities import Transaction
from feature_store.features import FeatureExtractor
from feature_store.store import FeatureStore
from risk_scoring.exceptions import InvalidInputError, ScoringError
from risk_scoring.ml.scorer import RiskScorer
from risk_scoring.models.alert import Alert
from risk_scoring.models.score import Score
from risk_scoring.services.alert_manager import AlertManager
from risk_scoring.services.score_cache import ScoreCache

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    CACHE_CHECK = "CacheCheck"
    EXTRACT = "Extract"
    SCORE = "Score"
    CACHE_STORE = "CacheStore"
    ALERT_CHECK = "AlertCheck"
    DONE = "Done"
    FAILED = "Failed"


@dataclass
class ScoringResult:
    score: Score
    alert: Optional[Alert] = None
    cache_hit: bool = False
    latency_ms: float = 0.0
    budget_exceeded: bool = False
    states: List[PipelineState] = field(default_factory=list)
    degraded_groups: List[str] = field(default_factory=list)


class ScoringPipeline:
    """
    Scores one transaction end to end

    The cache store, history write and alert creation form a single
    commit step shielded from caller cancellation.
    """

    def __init__(
        self,
        extractor: FeatureExtractor,
        scorer: RiskScorer,
        cache: ScoreCache,
        alert_manager: AlertManager,
        feature_store: Optional[FeatureStore] = None,
        cache_ttl: timedelta = timedelta(minutes=30),
        latency_budget_ms: float = 100.0,
        record_history: bool = True
    ):
        self.extractor = extractor
        self.scorer = scorer
        self.cache = cache
        self.alert_manager = alert_manager
        self.feature_store = feature_store
        self.cache_ttl = cache_ttl
        self.latency_budget_ms = latency_budget_ms
        self.record_history = record_history

    async def process(self, transaction: Transaction) -> ScoringResult:
        """
        Score a transaction, serving repeats from cache

        Raises:
            InvalidInputError: malformed transaction
            ScoringError: no strategy could score
        """
        start = time.perf_counter()
        states = [PipelineState.CACHE_CHECK]

        try:
            cached = await self.cache.get(transaction.transaction_id)
            if cached is not None:
                states.append(PipelineState.DONE)
                return self._finish(ScoringResult(score=cached, cache_hit=True, states=states), start)

            states.append(PipelineState.EXTRACT)
            features = await self.extractor.extract_features(transaction)

            states.append(PipelineState.SCORE)
            if self.scorer.model_loaded:
                # sklearn inference blocks, keep it off the event loop
                score = await asyncio.to_thread(self.scorer.build_score, features)
            else:
                score = self.scorer.build_score(features)

            states.extend([PipelineState.CACHE_STORE, PipelineState.ALERT_CHECK])
            alert = await asyncio.shield(self._commit(transaction, score))

        except (InvalidInputError, ScoringError) as e:
            logger.error(
                f"❌ Scoring failed for {transaction.transaction_id} in {states[-1].value}: {e}"
            )
            states.append(PipelineState.FAILED)
            raise

        states.append(PipelineState.DONE)
        result = ScoringResult(
            score=score,
            alert=alert,
            states=states,
            degraded_groups=list(features.degraded_groups)
        )
        return self._finish(result, start)

    async def _commit(self, transaction: Transaction, score: Score) -> Optional[Alert]:
        await self.cache.put(transaction.transaction_id, score, self.cache_ttl)

        if self.record_history and self.feature_store is not None:
            try:
                await self.feature_store.record(transaction)
                if score.is_fraud and transaction.source_account_id:
                    await self.feature_store.mark_fraudulent(transaction.source_account_id)
            except Exception as e:
                logger.warning(f"⚠️ History write failed for {transaction.transaction_id}: {e}")

        if not self.alert_manager.should_alert(score):
            return None

        try:
            return await self.alert_manager.create_alert(transaction, score)
        except Exception as e:
            logger.error(f"❌ Alert creation failed for {transaction.transaction_id}: {e}", exc_info=True)
            return None

    def _finish(self, result: ScoringResult, start: float) -> ScoringResult:
        result.latency_ms = round((time.perf_counter() - start) * 1000, 3)

        if result.latency_ms > self.latency_budget_ms:
            result.budget_exceeded = True
            logger.warning(
                f"⚠️ SLA VIOLATION: {result.score.transaction_id} took "
                f"{result.latency_ms:.1f}ms (budget {self.latency_budget_ms:.0f}ms)"
            )
        else:
            logger.info(
                f"✅ Scored {result.score.transaction_id}: {result.score.score:.4f} "
                f"({result.score.risk_level.value}) in {result.latency_ms:.1f}ms"
            )
        return result
