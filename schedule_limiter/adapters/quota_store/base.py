"""Quota store interfaces.

The limiter depends on this abstraction (not a concrete backend) so storage
can be swapped between the in-memory store and Redis via configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from schedule_limiter.utils.schedule import UsageMap

LIMIT_FIELD = "limit"


def empty_usage(months: Mapping[int, Iterable[int]]) -> dict[Any, Any]:
    """Build a zero-filled ``{year: {month: 0}}`` result skeleton."""
    return {year: {month: 0 for month in month_list} for year, month_list in months.items()}


class AbstractQuotaStore(ABC):
    """Interface for quota stores.

    Years and months passed in are already canonical integers; the limiter is
    responsible for normalization. Batch operations must be atomic on the
    backend: every bucket moves or none does.
    """

    @abstractmethod
    async def set_limit(self, identity: Any, limit: int) -> int:
        """Overwrite the identity's limit and return the stored value."""
        raise NotImplementedError

    @abstractmethod
    async def get_limit(self, identity: Any) -> int:
        """Return the identity's limit, 0 if it was never set."""
        raise NotImplementedError

    @abstractmethod
    async def get_usage(
        self,
        identity: Any,
        months: Mapping[int, Iterable[int]],
        *,
        include_limit: bool = False,
    ) -> dict[Any, Any]:
        """Read usage buckets.

        Args:
            identity: User or application identifier.
            months: ``{year: [month, ...]}`` buckets to read.
            include_limit: Also return the limit under the ``"limit"`` key.

        Returns:
            ``{year: {month: count}}``; missing buckets read as 0.
        """
        raise NotImplementedError

    @abstractmethod
    async def increase_values(self, identity: Any, deltas: Mapping[int, Mapping[int, int]]) -> UsageMap:
        """Atomically add every delta and return the post-increment values."""
        raise NotImplementedError

    @abstractmethod
    async def decrease_values(self, identity: Any, deltas: Mapping[int, Mapping[int, int]]) -> UsageMap:
        """Atomically subtract every delta and return the post-decrement values."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
        return None
