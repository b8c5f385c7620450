"""In-memory quota store.

Notes:
- Per-process only: nothing survives a restart and workers do not share state.
- Thread-safe: uses a lock around shared state, so each batch applies as a unit.
- Uses the same shard/field layout as the Redis store.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import Any

from schedule_limiter.adapters.quota_store.base import LIMIT_FIELD, AbstractQuotaStore, empty_usage
from schedule_limiter.utils.keys import DEFAULT_TAG, limit_key, usage_key
from schedule_limiter.utils.schedule import UsageMap


class InMemoryQuotaStore(AbstractQuotaStore):
    """Quota store keeping hash records in a process-local dict."""

    def __init__(self, *, tag: str = DEFAULT_TAG) -> None:
        self._tag = tag
        self._lock = threading.RLock()
        self._records: dict[str, dict[str, int]] = {}

    def _read(self, shard: str, field: str) -> int:
        return self._records.get(shard, {}).get(field, 0)

    def _apply(self, identity: Any, deltas: Mapping[int, Mapping[int, int]], sign: int) -> UsageMap:
        result: UsageMap = {year: {} for year in deltas}
        with self._lock:
            for year, months in deltas.items():
                for month, delta in months.items():
                    key = usage_key(identity, year, month, self._tag)
                    record = self._records.setdefault(key.shard, {})
                    record[key.field] = record.get(key.field, 0) + sign * delta
                    result[year][month] = record[key.field]
        return result

    async def set_limit(self, identity: Any, limit: int) -> int:
        key = limit_key(identity, self._tag)
        with self._lock:
            self._records.setdefault(key.shard, {})[key.field] = limit
        return limit

    async def get_limit(self, identity: Any) -> int:
        key = limit_key(identity, self._tag)
        with self._lock:
            return self._read(key.shard, key.field)

    async def get_usage(
        self,
        identity: Any,
        months: Mapping[int, Iterable[int]],
        *,
        include_limit: bool = False,
    ) -> dict[Any, Any]:
        usage = empty_usage(months)
        with self._lock:
            for year, month_counts in usage.items():
                for month in month_counts:
                    key = usage_key(identity, year, month, self._tag)
                    month_counts[month] = self._read(key.shard, key.field)
            if include_limit:
                key = limit_key(identity, self._tag)
                usage[LIMIT_FIELD] = self._read(key.shard, key.field)
        return usage

    async def increase_values(self, identity: Any, deltas: Mapping[int, Mapping[int, int]]) -> UsageMap:
        return self._apply(identity, deltas, 1)

    async def decrease_values(self, identity: Any, deltas: Mapping[int, Mapping[int, int]]) -> UsageMap:
        return self._apply(identity, deltas, -1)
