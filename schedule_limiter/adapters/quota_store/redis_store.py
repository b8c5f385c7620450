"""Redis-backed quota store.

Limits and usage buckets for one identity partition live in a single Redis
hash (see ``schedule_limiter.utils.keys``). Batches are applied with HINCRBY
inside a MULTI/EXEC pipeline so all buckets of one call move together.

Notes:
- Reads and the following commit are separate round trips; the limiter's
  check-then-commit is therefore not atomic across concurrent callers.
- MULTI/EXEC does not roll back commands that fail at execution time
  (e.g. WRONGTYPE on a corrupted field); such failures surface as StorageError.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any, Awaitable, Callable, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from schedule_limiter.adapters.quota_store.base import LIMIT_FIELD, AbstractQuotaStore, empty_usage
from schedule_limiter.core.errors import StorageError
from schedule_limiter.core.logging import hash_identity
from schedule_limiter.utils.keys import DEFAULT_TAG, StorageKey, limit_key, usage_key
from schedule_limiter.utils.schedule import UsageMap

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_redis_client(options: Mapping[str, Any]) -> redis.Redis:
    """Create an asyncio Redis client from backend options.

    A ``url`` option is handed to ``Redis.from_url``; everything else is
    passed through as keyword arguments (host, port, db, password, ...).
    """
    params = dict(options)
    params.setdefault("decode_responses", True)
    url = params.pop("url", None)
    if url:
        # NOTE: from_url is sync; do NOT await it
        return redis.Redis.from_url(url, **params)
    return redis.Redis(**params)


class RedisQuotaStore(AbstractQuotaStore):
    """Quota store on Redis hashes."""

    def __init__(self, client: redis.Redis, *, tag: str = DEFAULT_TAG) -> None:
        self._client = client
        self._tag = tag

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "RedisQuotaStore":
        """Build a store from the ``database.options`` mapping.

        The optional ``tag`` option overrides the shard key prefix; the rest
        configures the Redis connection.
        """
        params = dict(options)
        tag = params.pop("tag", DEFAULT_TAG)
        return cls(create_redis_client(params), tag=tag)

    async def _guard(self, operation: str, identity: Any, fn: Callable[[], Awaitable[T]]) -> T:
        try:
            return await fn()
        except RedisError as exc:
            logger.error(
                "quota_store.error",
                extra={
                    "backend": "redis",
                    "operation": operation,
                    "identity_hash": hash_identity(identity),
                    "error_type": type(exc).__name__,
                },
            )
            raise StorageError(
                code="storage_error",
                message=f"Redis error during {operation}: {exc}",
                details={"backend": "redis"},
            ) from exc

    async def set_limit(self, identity: Any, limit: int) -> int:
        key = limit_key(identity, self._tag)
        await self._guard("set_limit", identity, lambda: self._client.hset(key.shard, key.field, limit))
        return limit

    async def get_limit(self, identity: Any) -> int:
        key = limit_key(identity, self._tag)
        raw = await self._guard("get_limit", identity, lambda: self._client.hget(key.shard, key.field))
        return int(raw) if raw is not None else 0

    async def get_usage(
        self,
        identity: Any,
        months: Mapping[int, Iterable[int]],
        *,
        include_limit: bool = False,
    ) -> dict[Any, Any]:
        usage = empty_usage(months)

        # shard -> [(field, (year, month) or None for the limit)]
        wanted: dict[str, list[tuple[str, tuple[int, int] | None]]] = defaultdict(list)
        for year, month_counts in usage.items():
            for month in month_counts:
                key = usage_key(identity, year, month, self._tag)
                wanted[key.shard].append((key.field, (year, month)))
        if include_limit:
            key = limit_key(identity, self._tag)
            wanted[key.shard].append((key.field, None))

        for shard, entries in wanted.items():
            fields = [field for field, _ in entries]
            values = await self._guard(
                "get_usage",
                identity,
                lambda shard=shard, fields=fields: self._client.hmget(shard, fields),
            )
            for (_, bucket), raw in zip(entries, values):
                count = int(raw) if raw is not None else 0
                if bucket is None:
                    usage[LIMIT_FIELD] = count
                else:
                    year, month = bucket
                    usage[year][month] = count

        return usage

    async def _apply(
        self,
        operation: str,
        identity: Any,
        deltas: Mapping[int, Mapping[int, int]],
        sign: int,
    ) -> UsageMap:
        buckets: list[tuple[int, int, StorageKey, int]] = [
            (year, month, usage_key(identity, year, month, self._tag), sign * delta)
            for year, months in deltas.items()
            for month, delta in months.items()
        ]
        result: UsageMap = {year: {} for year in deltas}
        if not buckets:
            return result

        async def _run() -> list[Any]:
            async with self._client.pipeline(transaction=True) as pipe:
                for _, _, key, delta in buckets:
                    pipe.hincrby(key.shard, key.field, delta)
                return await pipe.execute()

        values = await self._guard(operation, identity, _run)

        for (year, month, _, _), value in zip(buckets, values):
            result[year][month] = int(value)
        return result

    async def increase_values(self, identity: Any, deltas: Mapping[int, Mapping[int, int]]) -> UsageMap:
        return await self._apply("increase_values", identity, deltas, 1)

    async def decrease_values(self, identity: Any, deltas: Mapping[int, Mapping[int, int]]) -> UsageMap:
        return await self._apply("decrease_values", identity, deltas, -1)

    async def close(self) -> None:
        await self._client.aclose()
