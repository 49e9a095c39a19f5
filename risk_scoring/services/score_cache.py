"""
Score cache - TTL cache of Score by transaction id
A hit is authoritative: the scorer is not consulted again
"""
import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from datetime import timedelta
from typing import Callable, Optional, Tuple

from redis.asyncio import Redis

from risk_scoring.models.score import Score

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "fraud_score"


def cache_key(transaction_id: str) -> str:
    return f"{CACHE_KEY_PREFIX}:{transaction_id}"


class ScoreCache(ABC):

    @abstractmethod
    async def get(self, transaction_id: str) -> Optional[Score]:
        pass

    @abstractmethod
    async def put(self, transaction_id: str, score: Score, ttl: timedelta) -> None:
        pass

    @property
    def backend(self) -> str:
        return type(self).__name__


class InMemoryScoreCache(ScoreCache):
    """
    Process-local cache with per-entry expiry

    Expired entries are dropped lazily on read; above max_entries expired
    entries are swept, then the oldest insertions are evicted.
    """

    def __init__(self, max_entries: int = 100_000, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, Tuple[float, Score]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    # No awaits below: each call is atomic on the event loop
    async def get(self, transaction_id: str) -> Optional[Score]:
        entry = self._entries.get(transaction_id)
        if entry is None:
            logger.info(f"❌ Cache MISS: {transaction_id}")
            return None

        expires_at, score = entry
        if self.clock() >= expires_at:
            del self._entries[transaction_id]
            logger.info(f"❌ Cache MISS (expired): {transaction_id}")
            return None

        logger.info(f"🎯 Cache HIT: {transaction_id}")
        return score

    async def put(self, transaction_id: str, score: Score, ttl: timedelta) -> None:
        self._entries.pop(transaction_id, None)
        self._entries[transaction_id] = (self.clock() + ttl.total_seconds(), score)

        if len(self._entries) > self.max_entries:
            self._evict()
        logger.info(f"💾 Cache SET: {transaction_id} (TTL: {int(ttl.total_seconds())}s)")

    def _evict(self) -> None:
        now = self.clock()
        for key in [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]:
            del self._entries[key]

        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)


class RedisScoreCache(ScoreCache):
    """Shared cache: SETEX fraud_score:{transaction_id} <json>"""

    def __init__(self, client: Redis):
        self.client = client

    async def get(self, transaction_id: str) -> Optional[Score]:
        key = cache_key(transaction_id)
        try:
            cached = await self.client.get(key)
        except Exception as e:
            logger.warning(f"⚠️ Cache get failed: {e}")
            return None

        if not cached:
            logger.info(f"❌ Cache MISS: {key}")
            return None

        try:
            score = Score.model_validate_json(cached)
        except ValueError as e:
            logger.warning(f"⚠️ Discarding unreadable cache entry {key}: {e}")
            return None

        logger.info(f"🎯 Cache HIT: {key}")
        return score

    async def put(self, transaction_id: str, score: Score, ttl: timedelta) -> None:
        key = cache_key(transaction_id)
        ttl_seconds = max(int(ttl.total_seconds()), 1)
        try:
            await self.client.setex(key, ttl_seconds, score.model_dump_json())
            logger.info(f"💾 Cache SET: {key} (TTL: {ttl_seconds}s)")
        except Exception as e:
            logger.warning(f"⚠️ Cache set failed: {e}")
