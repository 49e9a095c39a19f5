"""
Redis-backed feature store
One sorted set per account (score = event epoch seconds, member = JSON row)
"""
import json
import logging
from datetime import timedelta
from typing import Iterable, Set

import pandas as pd
from redis.asyncio import Redis

from .constants import DEFAULT_RETENTION
from .entities import Transaction
from .store import HistoryFeatureStore, history_row, to_epoch

logger = logging.getLogger(__name__)

HISTORY_KEY_PREFIX = "txn_history"
FLAGGED_ACCOUNTS_KEY = "fraud_flagged_accounts"


class RedisFeatureStore(HistoryFeatureStore):
    """Time-indexed account history shared by every scoring worker"""

    def __init__(self, client: Redis, retention: timedelta = DEFAULT_RETENTION):
        self.client = client
        self.retention = retention

    @staticmethod
    def history_key(account_id: str) -> str:
        return f"{HISTORY_KEY_PREFIX}:{account_id}"

    async def _history(self, account_id, start, end) -> pd.DataFrame:
        # "(" makes the upper bound exclusive
        members = await self.client.zrangebyscore(
            self.history_key(account_id),
            to_epoch(start),
            f"({to_epoch(end)}"
        )
        return self._frame([json.loads(member) for member in members])

    async def _flagged_among(self, account_ids: Iterable[str]) -> Set[str]:
        ids = list(account_ids)
        if not ids:
            return set()
        flags = await self.client.smismember(FLAGGED_ACCOUNTS_KEY, ids)
        return {account_id for account_id, flagged in zip(ids, flags) if flagged}

    async def record(self, transaction: Transaction) -> None:
        if not transaction.source_account_id:
            return

        key = self.history_key(transaction.source_account_id)
        row = history_row(transaction)
        await self.client.zadd(key, {json.dumps(row, sort_keys=True): row["event_time"]})

        # Prune rows that fell out of retention and let idle accounts expire
        cutoff = row["event_time"] - self.retention.total_seconds()
        await self.client.zremrangebyscore(key, "-inf", f"({cutoff}")
        await self.client.expire(key, int(self.retention.total_seconds()))

    async def mark_fraudulent(self, account_id: str) -> None:
        await self.client.sadd(FLAGGED_ACCOUNTS_KEY, account_id)
        logger.info(f"🚩 Account flagged as fraudulent: {account_id}")
