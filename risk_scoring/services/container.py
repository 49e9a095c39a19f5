"""
Component wiring from Settings
Redis-backed store/cache when REDIS_URL is reachable, in-memory otherwise
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from kafka.errors import KafkaError
from sqlalchemy.ext.asyncio import AsyncEngine

from feature_store.features import FeatureExtractor
from feature_store.redis_store import RedisFeatureStore
from feature_store.store import FeatureStore, InMemoryFeatureStore
from risk_scoring.config import Settings
from risk_scoring.database.postgres_client import create_engine, create_session_factory, init_models
from risk_scoring.database.redis_client import RedisClient
from risk_scoring.messaging.alert_publisher import KafkaAlertPublisher
from risk_scoring.ml.scorer import RiskScorer
from risk_scoring.services.alert_manager import AlertManager
from risk_scoring.services.score_cache import InMemoryScoreCache, RedisScoreCache, ScoreCache
from risk_scoring.services.scoring_pipeline import ScoringPipeline

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    engine: AsyncEngine
    feature_store: FeatureStore
    extractor: FeatureExtractor
    cache: ScoreCache
    scorer: RiskScorer
    alert_manager: AlertManager
    pipeline: ScoringPipeline
    uses_redis: bool = False

    async def close(self) -> None:
        await self.alert_manager.close()
        if self.uses_redis:
            await RedisClient.close()
        await self.engine.dispose()
        logger.info("👋 Scoring components closed")


def build_publisher(settings: Settings) -> Optional[KafkaAlertPublisher]:
    if not settings.kafka_bootstrap_servers:
        logger.info("Kafka not configured, alert events disabled")
        return None
    try:
        return KafkaAlertPublisher(settings.kafka_bootstrap_servers, settings.alert_topic)
    except KafkaError as e:
        logger.warning(f"⚠️ Kafka connection failed: {e}. Alert events disabled.")
        return None


async def build_container(settings: Settings) -> Container:
    scorer = RiskScorer.from_settings(settings)

    redis = await RedisClient.get_client(settings.redis_url)
    retention = timedelta(days=settings.history_retention_days)
    if redis is not None:
        feature_store: FeatureStore = RedisFeatureStore(redis, retention)
        cache: ScoreCache = RedisScoreCache(redis)
    else:
        feature_store = InMemoryFeatureStore(retention)
        cache = InMemoryScoreCache(max_entries=settings.cache_max_entries)

    engine = create_engine(settings.db_url)
    if settings.auto_create_schema:
        await init_models(engine)

    alert_manager = AlertManager(
        create_session_factory(engine),
        publisher=build_publisher(settings),
        fraud_cutoff=settings.fraud_cutoff
    )
    extractor = FeatureExtractor(feature_store, settings.feature_query_timeout_ms)

    pipeline = ScoringPipeline(
        extractor=extractor,
        scorer=scorer,
        cache=cache,
        alert_manager=alert_manager,
        feature_store=feature_store,
        cache_ttl=timedelta(minutes=settings.cache_ttl_minutes),
        latency_budget_ms=settings.latency_budget_ms,
        record_history=settings.record_history
    )

    logger.info(
        f"✅ Components ready: store={feature_store.backend}, cache={cache.backend}, "
        f"scorer={scorer.version}"
    )
    return Container(
        settings=settings,
        engine=engine,
        feature_store=feature_store,
        extractor=extractor,
        cache=cache,
        scorer=scorer,
        alert_manager=alert_manager,
        pipeline=pipeline,
        uses_redis=redis is not None
    )
