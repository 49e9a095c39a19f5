"""
Health check route
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from risk_scoring.api.schemas import HealthResponse
from risk_scoring.database.postgres_client import check_connection
from risk_scoring.database.redis_client import RedisClient
from risk_scoring.routes.dependencies import get_container
from risk_scoring.services.container import Container

health_router = APIRouter(tags=["health"])


@health_router.get("/health", response_model=HealthResponse)
async def health(container: Container = Depends(get_container)):
    """System health check"""
    database_ok = await check_connection(container.engine)

    if container.uses_redis:
        redis = "connected" if await RedisClient.ping() else "disconnected"
    else:
        redis = "disabled"

    return HealthResponse(
        status="healthy" if database_ok and redis != "disconnected" else "degraded",
        cache_backend=container.cache.backend,
        feature_store_backend=container.feature_store.backend,
        database="connected" if database_ok else "disconnected",
        redis=redis,
        model_loaded=container.scorer.model_loaded,
        model_version=container.scorer.version,
        timestamp=datetime.now(timezone.utc)
    )
