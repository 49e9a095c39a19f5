# tests/conftest.py

import uuid
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

from feature_store.entities import Transaction
from risk_scoring.database.postgres_client import create_engine, create_session_factory, init_models

BASE_TIME = datetime(2024, 3, 6, 14, 0, 0, tzinfo=timezone.utc)  # Wednesday


def _bound(value, default):
    """Parse a sorted-set score bound: -inf, +inf, (exclusive or inclusive"""
    value = str(value) if value is not None else default
    if value in ("-inf", "+inf", "inf"):
        return float(value), False
    if value.startswith("("):
        return float(value[1:]), True
    return float(value), False


def _in_range(score, low, high):
    (lo, lo_open), (hi, hi_open) = low, high
    above = score > lo if lo_open else score >= lo
    below = score < hi if hi_open else score <= hi
    return above and below


class FakeRedis:
    """In-test double covering the redis.asyncio calls the service makes"""

    def __init__(self):
        self.strings = {}
        self.ttls = {}
        self.zsets = {}
        self.sets = {}
        self.fail = False
        self.calls = []

    def _check(self, name):
        self.calls.append(name)
        if self.fail:
            raise RedisConnectionError("redis unavailable")

    async def ping(self):
        self._check("ping")
        return True

    async def get(self, key):
        self._check("get")
        return self.strings.get(key)

    async def setex(self, key, ttl, value):
        self._check("setex")
        self.strings[key] = value
        self.ttls[key] = ttl
        return True

    async def zadd(self, key, mapping):
        self._check("zadd")
        zset = self.zsets.setdefault(key, {})
        added = sum(1 for member in mapping if member not in zset)
        zset.update({member: float(score) for member, score in mapping.items()})
        return added

    async def zrangebyscore(self, key, min, max):
        self._check("zrangebyscore")
        low, high = _bound(min, "-inf"), _bound(max, "+inf")
        members = sorted(self.zsets.get(key, {}).items(), key=lambda item: item[1])
        return [member for member, score in members if _in_range(score, low, high)]

    async def zremrangebyscore(self, key, min, max):
        self._check("zremrangebyscore")
        low, high = _bound(min, "-inf"), _bound(max, "+inf")
        zset = self.zsets.get(key, {})
        doomed = [member for member, score in zset.items() if _in_range(score, low, high)]
        for member in doomed:
            del zset[member]
        return len(doomed)

    async def expire(self, key, seconds):
        self._check("expire")
        self.ttls[key] = seconds
        return True

    async def sadd(self, key, *values):
        self._check("sadd")
        members = self.sets.setdefault(key, set())
        before = len(members)
        members.update(values)
        return len(members) - before

    async def smismember(self, key, values):
        self._check("smismember")
        members = self.sets.get(key, set())
        return [1 if value in members else 0 for value in values]

    async def aclose(self):
        pass


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def make_transaction():
    """Factory: geolocated 100 USD transfer at 14:00 UTC unless overridden"""

    def _make(**overrides):
        fields = {
            "transaction_id": f"txn-{uuid.uuid4().hex[:12]}",
            "transaction_type": "transfer",
            "source_account_id": "acct-1",
            "destination_account_id": "acct-2",
            "currency": "USD",
            "amount": 100.0,
            "created_at": BASE_TIME,
            "latitude": 40.71,
            "longitude": -74.0,
        }
        fields.update(overrides)
        return Transaction(**fields)

    return _make


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """SQLite-backed alert database, schema created per test"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'alerts.db'}")
    await init_models(engine)
    yield create_session_factory(engine)
    await engine.dispose()
