# tests/test_pipeline.py
import asyncio
import threading
from datetime import timedelta

import pytest

from feature_store.exceptions import InvalidInputError
from feature_store.features import FeatureExtractor
from feature_store.store import InMemoryFeatureStore
from risk_scoring.exceptions import ScoringError
from risk_scoring.ml.scorer import RiskScorer
from risk_scoring.ml.strategies import RULES_VERSION, ModelStrategy, RuleBasedStrategy
from risk_scoring.models.alert import AlertStatus
from risk_scoring.models.score import RiskLevel
from risk_scoring.services.alert_manager import AlertManager
from risk_scoring.services.score_cache import InMemoryScoreCache
from risk_scoring.services.scoring_pipeline import PipelineState, ScoringPipeline

from conftest import BASE_TIME

FULL_PATH = [
    PipelineState.CACHE_CHECK,
    PipelineState.EXTRACT,
    PipelineState.SCORE,
    PipelineState.CACHE_STORE,
    PipelineState.ALERT_CHECK,
    PipelineState.DONE,
]


class CountingScorer(RiskScorer):
    def __init__(self, **kwargs):
        super().__init__(fallback=RuleBasedStrategy(), **kwargs)
        self.calls = 0

    def build_score(self, features):
        self.calls += 1
        return super().build_score(features)


class BrokenModel:
    def predict_proba(self, frame):
        raise RuntimeError("model exploded")


class FailingStore(InMemoryFeatureStore):
    async def network_risk_in_window(self, account_id, start, end):
        raise ConnectionError("graph store down")


class OutageStore(InMemoryFeatureStore):
    """Every history and flag lookup fails"""

    async def _history(self, account_id, start, end):
        raise ConnectionError("history store down")

    async def _flagged_among(self, account_ids):
        raise ConnectionError("history store down")


class ThreadRecordingModel:
    """Classifier that notes which thread ran inference"""

    def __init__(self):
        self.thread_ids = []

    def predict_proba(self, frame):
        self.thread_ids.append(threading.get_ident())
        return [[0.6, 0.4]]


class SlowCache(InMemoryScoreCache):
    """put() that yields long enough to be cancelled mid-commit"""

    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()

    async def put(self, transaction_id, score, ttl):
        self.started.set()
        await asyncio.sleep(0.05)
        await super().put(transaction_id, score, ttl)


class BrokenAlertManager(AlertManager):
    async def create_alert(self, transaction, score):
        raise RuntimeError("database down")


def build_pipeline(session_factory, store=None, scorer=None, cache=None, alert_manager=None, **kwargs):
    # An empty InMemoryScoreCache is falsy, compare against None
    store = store if store is not None else InMemoryFeatureStore()
    return ScoringPipeline(
        extractor=FeatureExtractor(store),
        scorer=scorer if scorer is not None else CountingScorer(),
        cache=cache if cache is not None else InMemoryScoreCache(),
        alert_manager=alert_manager if alert_manager is not None else AlertManager(session_factory),
        feature_store=store,
        **kwargs
    )


async def seed_history(store, make_transaction, count, at, amount=100.0):
    """`count` prior transactions for acct-1 in the hour before `at`"""
    for i in range(count):
        await store.record(make_transaction(amount=amount, created_at=at - timedelta(minutes=i + 1)))


class TestScoringExamples:
    """End-to-end scores on the rule strategy"""

    @pytest.mark.asyncio
    async def test_low_risk_transaction(self, session_factory, make_transaction):
        """✅ 5000 at 14:00 with 2 txns/24h: 0.3, Low, no alert, not fraud."""
        store = InMemoryFeatureStore()
        await seed_history(store, make_transaction, 2, BASE_TIME)
        pipeline = build_pipeline(session_factory, store=store)

        result = await pipeline.process(make_transaction(amount=5000.0))

        assert result.score.score == 0.3
        assert result.score.risk_level == RiskLevel.LOW
        assert result.score.is_fraud is False
        assert result.score.model_version == RULES_VERSION
        assert result.alert is None
        assert result.cache_hit is False
        assert result.states == FULL_PATH

    @pytest.mark.asyncio
    async def test_score_at_cutoff_does_not_alert(self, session_factory, make_transaction):
        """✅ 60k with 15 txns/24h scores 0.8: no alert."""
        store = InMemoryFeatureStore()
        await seed_history(store, make_transaction, 15, BASE_TIME)
        pipeline = build_pipeline(session_factory, store=store)

        result = await pipeline.process(make_transaction(amount=60_000.0))

        assert result.score.score == 0.8
        assert result.score.risk_level == RiskLevel.HIGH
        assert result.score.is_fraud is False
        assert result.alert is None
        assert await pipeline.alert_manager.list_active() == []

    @pytest.mark.asyncio
    async def test_score_above_cutoff_alerts(self, session_factory, make_transaction):
        """🚨 Same at 02:00 scores 0.9 and raises an alert."""
        night = BASE_TIME.replace(hour=2)
        store = InMemoryFeatureStore()
        await seed_history(store, make_transaction, 15, night)
        pipeline = build_pipeline(session_factory, store=store)

        result = await pipeline.process(make_transaction(amount=60_000.0, created_at=night))

        assert result.score.score == 0.9
        assert result.score.is_fraud is True
        assert result.alert is not None
        assert result.alert.status == AlertStatus.OPEN
        assert result.alert.risk_score == 0.9

        active = await pipeline.alert_manager.list_active()
        assert [alert.alert_id for alert in active] == [result.alert.alert_id]


class TestCaching:
    """Tests for cache-first scoring"""

    @pytest.mark.asyncio
    async def test_repeat_served_from_cache(self, session_factory, make_transaction):
        """✅ Second call within TTL returns the cached score without re-scoring."""
        scorer = CountingScorer()
        pipeline = build_pipeline(session_factory, scorer=scorer)
        txn = make_transaction()

        first = await pipeline.process(txn)
        second = await pipeline.process(txn)

        assert scorer.calls == 1
        assert second.cache_hit is True
        assert second.score == first.score
        assert second.states == [PipelineState.CACHE_CHECK, PipelineState.DONE]

    @pytest.mark.asyncio
    async def test_cached_high_score_does_not_realert(self, session_factory, make_transaction):
        """✅ A cache hit skips the alert step."""
        night = BASE_TIME.replace(hour=2)
        store = InMemoryFeatureStore()
        await seed_history(store, make_transaction, 15, night)
        pipeline = build_pipeline(session_factory, store=store)
        txn = make_transaction(amount=60_000.0, created_at=night)

        await pipeline.process(txn)
        repeat = await pipeline.process(txn)

        assert repeat.alert is None
        assert len(await pipeline.alert_manager.list_active()) == 1

    @pytest.mark.asyncio
    async def test_injected_empty_cache_is_used(self, session_factory, make_transaction):
        """✅ A fresh empty cache passed in receives the score."""
        cache = InMemoryScoreCache()
        pipeline = build_pipeline(session_factory, cache=cache)
        txn = make_transaction()

        assert pipeline.cache is cache

        await pipeline.process(txn)

        assert len(cache) == 1
        assert await cache.get(txn.transaction_id) is not None


class TestFailures:
    """Tests for failed and degraded runs"""

    @pytest.mark.asyncio
    async def test_invalid_input_fails(self, session_factory, make_transaction):
        """❌ Invalid input is surfaced and nothing is cached."""
        cache = InMemoryScoreCache()
        pipeline = build_pipeline(session_factory, cache=cache)
        txn = make_transaction(amount=-5.0)

        with pytest.raises(InvalidInputError):
            await pipeline.process(txn)

        assert await cache.get(txn.transaction_id) is None

    @pytest.mark.asyncio
    async def test_scoring_error_fails(self, session_factory, make_transaction):
        """❌ Model failure without fallback is surfaced."""
        scorer = RiskScorer(model=ModelStrategy(BrokenModel(), "broken"), fallback=None)
        pipeline = build_pipeline(session_factory, scorer=scorer)

        with pytest.raises(ScoringError):
            await pipeline.process(make_transaction())

    @pytest.mark.asyncio
    async def test_degraded_features_still_scored(self, session_factory, make_transaction):
        """⚠️ A failing store group still produces a score."""
        pipeline = build_pipeline(session_factory, store=FailingStore())

        result = await pipeline.process(make_transaction())

        assert result.degraded_groups == ["network"]
        assert 0.0 <= result.score.score <= 1.0

    @pytest.mark.asyncio
    async def test_store_outage_keeps_daytime_score(self, session_factory, make_transaction):
        """⚠️ Store outage at 14:00 does not trip the unusual-hour rule."""
        pipeline = build_pipeline(session_factory, store=OutageStore())

        result = await pipeline.process(make_transaction())

        assert result.degraded_groups == ["behavioral", "velocity", "network"]
        assert result.score.score == 0.3
        assert "Unusual transaction time" not in result.score.explanation

    @pytest.mark.asyncio
    async def test_model_inference_off_event_loop(self, session_factory, make_transaction):
        """✅ Model inference runs in a worker thread."""
        model = ThreadRecordingModel()
        scorer = RiskScorer(model=ModelStrategy(model, "thread-test"), fallback=RuleBasedStrategy())
        pipeline = build_pipeline(session_factory, scorer=scorer)

        result = await pipeline.process(make_transaction())

        assert result.score.score == 0.4
        assert result.score.model_version == "thread-test"
        assert len(model.thread_ids) == 1
        assert model.thread_ids[0] != threading.get_ident()

    @pytest.mark.asyncio
    async def test_alert_failure_keeps_score(self, session_factory, make_transaction):
        """⚠️ Alert store failure does not lose the score."""
        night = BASE_TIME.replace(hour=2)
        store = InMemoryFeatureStore()
        await seed_history(store, make_transaction, 15, night)
        pipeline = build_pipeline(
            session_factory, store=store, alert_manager=BrokenAlertManager(session_factory)
        )

        result = await pipeline.process(make_transaction(amount=60_000.0, created_at=night))

        assert result.score.score == 0.9
        assert result.alert is None

    @pytest.mark.asyncio
    async def test_latency_budget_flag(self, session_factory, make_transaction):
        """⚠️ Over-budget runs are flagged, not failed."""
        pipeline = build_pipeline(session_factory, latency_budget_ms=0.0)

        result = await pipeline.process(make_transaction())

        assert result.budget_exceeded is True
        assert result.latency_ms > 0


class TestCommitStep:
    """Tests for the cache/history/alert commit"""

    @pytest.mark.asyncio
    async def test_history_recorded(self, session_factory, make_transaction):
        """✅ Scored transactions feed later feature windows."""
        store = InMemoryFeatureStore()
        pipeline = build_pipeline(session_factory, store=store)

        await pipeline.process(make_transaction(created_at=BASE_TIME - timedelta(minutes=5)))
        later = await pipeline.extractor.extract_features(make_transaction())

        assert later.txn_count_24h == 1

    @pytest.mark.asyncio
    async def test_history_disabled(self, session_factory, make_transaction):
        """✅ record_history=False leaves the store untouched."""
        store = InMemoryFeatureStore()
        pipeline = build_pipeline(session_factory, store=store, record_history=False)

        await pipeline.process(make_transaction(created_at=BASE_TIME - timedelta(minutes=5)))

        assert await store.count_in_window("acct-1", BASE_TIME - timedelta(days=1), BASE_TIME) == 0

    @pytest.mark.asyncio
    async def test_fraudulent_source_flagged(self, session_factory, make_transaction):
        """🚩 Fraud scores flag the source account for network risk."""
        night = BASE_TIME.replace(hour=2)
        store = InMemoryFeatureStore()
        await seed_history(store, make_transaction, 15, night)
        pipeline = build_pipeline(session_factory, store=store)

        await pipeline.process(make_transaction(amount=60_000.0, created_at=night))
        await store.record(make_transaction(
            source_account_id="acct-9",
            destination_account_id="acct-1",
            created_at=night - timedelta(minutes=1)
        ))

        risk = await store.network_risk_in_window("acct-9", night - timedelta(days=1), night)
        assert risk.score == 1.0
        assert risk.associated_fraud_count == 1

    @pytest.mark.asyncio
    async def test_commit_survives_cancellation(self, session_factory, make_transaction):
        """✅ Cancelling the caller mid-commit still completes the write."""
        cache = SlowCache()
        pipeline = build_pipeline(session_factory, cache=cache)
        txn = make_transaction()

        task = asyncio.create_task(pipeline.process(txn))
        await cache.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        await asyncio.sleep(0.2)
        assert await cache.get(txn.transaction_id) is not None
