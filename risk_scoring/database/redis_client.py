"""
Redis client shared by the score cache and the feature store
Singleton pattern with async support
"""
import logging
from typing import Optional

from redis import asyncio as aioredis
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


def _display_url(redis_url: str) -> str:
    return redis_url.split('@')[-1] if '@' in redis_url else redis_url


class RedisClient:
    """Async Redis client singleton"""

    _instance: Optional[Redis] = None

    @classmethod
    async def get_client(cls, redis_url: Optional[str]) -> Optional[Redis]:
        """
        Get or create Redis client instance
        Returns None when no URL is configured or the server is unreachable
        """
        if cls._instance is None and redis_url:
            client = aioredis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_keepalive=True,
                health_check_interval=30
            )
            try:
                # Test connection
                await client.ping()
                cls._instance = client
                logger.info(f"✅ Redis connected: {_display_url(redis_url)}")
            except Exception as e:
                logger.warning(f"⚠️ Redis connection failed: {e}. Using in-memory backends.")
                await client.aclose()

        return cls._instance

    @classmethod
    async def ping(cls) -> bool:
        if cls._instance is None:
            return False
        try:
            return bool(await cls._instance.ping())
        except Exception as e:
            logger.warning(f"⚠️ Redis ping failed: {e}")
            return False

    @classmethod
    async def close(cls):
        """Close Redis connection"""
        if cls._instance:
            await cls._instance.aclose()
            cls._instance = None
            logger.info("Redis connection closed")
