# tests/test_score_cache.py
import json
from datetime import timedelta

import pytest

from risk_scoring.models.score import RiskLevel, Score
from risk_scoring.services.score_cache import InMemoryScoreCache, RedisScoreCache, cache_key

from conftest import FakeRedis

TTL = timedelta(minutes=30)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_score(transaction_id="txn-1", value=0.3) -> Score:
    return Score(
        transaction_id=transaction_id,
        score=value,
        risk_level=RiskLevel.LOW,
        is_fraud=False,
        model_version="rules-v1.0-fallback",
        explanation=["Missing geolocation"]
    )


class TestInMemoryScoreCache:
    """Tests for the process-local TTL cache"""

    @pytest.mark.asyncio
    async def test_put_then_get(self):
        """✅ Stored score is returned unchanged."""
        cache = InMemoryScoreCache()
        score = make_score()
        await cache.put("txn-1", score, TTL)

        assert await cache.get("txn-1") == score

    @pytest.mark.asyncio
    async def test_miss(self):
        """✅ Unknown id is a miss."""
        assert await InMemoryScoreCache().get("nope") is None

    @pytest.mark.asyncio
    async def test_entry_expires(self):
        """✅ Entries vanish once their TTL elapses."""
        clock = FakeClock()
        cache = InMemoryScoreCache(clock=clock)
        await cache.put("txn-1", make_score(), TTL)

        clock.advance(TTL.total_seconds() - 1)
        assert await cache.get("txn-1") is not None

        clock.advance(1)
        assert await cache.get("txn-1") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_entries_expire_independently(self):
        """✅ Each entry keeps its own TTL."""
        clock = FakeClock()
        cache = InMemoryScoreCache(clock=clock)
        await cache.put("short", make_score("short"), timedelta(seconds=10))
        await cache.put("long", make_score("long"), timedelta(seconds=100))

        clock.advance(50)

        assert await cache.get("short") is None
        assert await cache.get("long") is not None

    @pytest.mark.asyncio
    async def test_oldest_evicted_above_capacity(self):
        """✅ Oldest insertions are evicted first."""
        cache = InMemoryScoreCache(max_entries=2)
        for transaction_id in ["a", "b", "c"]:
            await cache.put(transaction_id, make_score(transaction_id), TTL)

        assert len(cache) == 2
        assert await cache.get("a") is None
        assert await cache.get("c") is not None

    @pytest.mark.asyncio
    async def test_expired_swept_before_evicting_live(self):
        """✅ Expired entries go before live ones."""
        clock = FakeClock()
        cache = InMemoryScoreCache(max_entries=2, clock=clock)
        await cache.put("live", make_score("live"), TTL)
        await cache.put("stale", make_score("stale"), timedelta(seconds=1))
        clock.advance(5)

        await cache.put("new", make_score("new"), TTL)

        assert await cache.get("live") is not None
        assert await cache.get("new") is not None


class TestRedisScoreCache:
    """Tests for the Redis SETEX cache"""

    @pytest.mark.asyncio
    async def test_setex_with_ttl(self):
        """✅ Stored under fraud_score:{id} with TTL seconds."""
        redis = FakeRedis()
        cache = RedisScoreCache(redis)
        await cache.put("txn-1", make_score(), TTL)

        key = cache_key("txn-1")
        assert key == "fraud_score:txn-1"
        assert redis.ttls[key] == 1800
        assert json.loads(redis.strings[key])["score"] == 0.3

    @pytest.mark.asyncio
    async def test_round_trip(self):
        """✅ Cached JSON decodes back to the same Score."""
        cache = RedisScoreCache(FakeRedis())
        score = make_score()
        await cache.put("txn-1", score, TTL)

        assert await cache.get("txn-1") == score

    @pytest.mark.asyncio
    async def test_errors_degrade_to_miss(self):
        """⚠️ Redis failures are a miss and a skipped write."""
        redis = FakeRedis()
        redis.fail = True
        cache = RedisScoreCache(redis)

        await cache.put("txn-1", make_score(), TTL)
        assert await cache.get("txn-1") is None

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_miss(self):
        """⚠️ Unreadable payloads are ignored."""
        redis = FakeRedis()
        redis.strings[cache_key("txn-1")] = "{not json"

        assert await RedisScoreCache(redis).get("txn-1") is None
