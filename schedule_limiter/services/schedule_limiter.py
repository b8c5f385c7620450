"""Schedule limiter service: per-identity, per-month token quotas.

This service is the core business logic. For every create/cancel call it:
- Resolves shorthand token arguments and normalizes month designators
- Reads the current usage (and limit) for the touched buckets
- Validates every bucket before any write, so a rejected batch has no effect
- Commits the whole batch through a single atomic store operation

The limit applies to each (year, month) bucket independently: a limit of 10
admits 8 tokens in March and 8 tokens in April.

Concurrency: the read and the commit are separate store round trips. Two
concurrent calls for the same identity can both pass validation and jointly
overrun the limit; closing that gap needs a backend-side conditional
increment or a per-identity lock, neither of which is provided here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any, Callable

from schedule_limiter.adapters.quota_store.base import LIMIT_FIELD, AbstractQuotaStore
from schedule_limiter.adapters.quota_store.factory import create_quota_store
from schedule_limiter.core.config import LimiterConfig
from schedule_limiter.core.errors import (
    ConfigurationError,
    ExceedsLimitError,
    NegativeUsageError,
    ValidationAppError,
)
from schedule_limiter.core.logging import hash_identity
from schedule_limiter.utils.schedule import (
    UsageMap,
    months_touched,
    normalize_months,
    normalize_schedule,
    resolve_tokens,
)

logger = logging.getLogger(__name__)


def _validate_identity(identity: Any) -> None:
    if isinstance(identity, bool) or not isinstance(identity, (int, str)) or str(identity) == "":
        raise ValidationAppError(
            code="invalid_identity",
            message="Identity must be a non-empty string or an integer",
        )


def _validate_limit(limit: Any) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValidationAppError(
            code="invalid_limit",
            message=f"Limit must be a non-negative integer, got {limit!r}",
        )
    return limit


class ScheduleLimiter:
    """Tracks token usage per identity and (year, month) against one limit."""

    def __init__(self, store: AbstractQuotaStore, *, today: Callable[[], date] = date.today) -> None:
        """Initialize the limiter.

        Args:
            store: Quota store holding limits and usage buckets.
            today: Clock used to expand shorthand token arguments.
        """
        self._store = store
        self._today = today

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any] | LimiterConfig,
        *,
        today: Callable[[], date] = date.today,
    ) -> "ScheduleLimiter":
        """Build a limiter from ``{"database": {"type": ..., "options": {...}}}``.

        Raises:
            ConfigurationError: If the mapping is malformed or names an unknown backend.
        """
        if not isinstance(config, LimiterConfig):
            try:
                config = LimiterConfig.model_validate(config)
            except ValueError as exc:
                raise ConfigurationError(
                    code="invalid_configuration",
                    message=f"Invalid limiter configuration: {exc}",
                ) from exc
        return cls(create_quota_store(config.database), today=today)

    @property
    def store(self) -> AbstractQuotaStore:
        return self._store

    async def set_limit(self, identity: Any, limit: int) -> int:
        """Set the per-bucket limit for an identity and return it."""
        _validate_identity(identity)
        stored = await self._store.set_limit(identity, _validate_limit(limit))
        logger.info("limit.set", extra={"identity_hash": hash_identity(identity), "limit": stored})
        return stored

    async def get_limit(self, identity: Any) -> int:
        """Return the identity's limit (0 when unset)."""
        _validate_identity(identity)
        return await self._store.get_limit(identity)

    async def get_usage(
        self,
        identity: Any,
        months: Mapping[Any, Iterable[Any]],
        *,
        include_limit: bool = False,
    ) -> dict[Any, Any]:
        """Read usage for ``{year: [month designators]}``.

        Returns:
            ``{year: {month: count}}`` with canonical integer keys, plus a
            ``"limit"`` entry when ``include_limit`` is true.
        """
        _validate_identity(identity)
        return await self._store.get_usage(identity, normalize_months(months), include_limit=include_limit)

    def _prepare(self, identity: Any, tokens: Any) -> UsageMap:
        _validate_identity(identity)
        return normalize_schedule(resolve_tokens(tokens, self._today))

    async def create_schedule(self, identity: Any, tokens: Any, force: bool = False) -> UsageMap:
        """Spend tokens against one or more month buckets as a single batch.

        Args:
            identity: User or application identifier.
            tokens: An int (current month), ``{month: n}`` (current year) or
                ``{year: {month: n}}``.
            force: Skip the limit check (administrative override).

        Returns:
            Post-increment usage for every bucket in the request.

        Raises:
            UnknownMonthError: If a month designator is not recognized.
            ValidationAppError: If the identity or token counts are malformed.
            ExceedsLimitError: If any bucket would exceed the limit; nothing is written.
            StorageError: If the backend fails.
        """
        request = self._prepare(identity, tokens)

        if not force:
            usage = await self._store.get_usage(identity, months_touched(request), include_limit=True)
            limit = usage.pop(LIMIT_FIELD)
            for year, months in request.items():
                for month, requested in months.items():
                    current = usage[year][month]
                    if current + requested > limit:
                        error = ExceedsLimitError(
                            year=year,
                            month=month,
                            requested=requested,
                            usage=current,
                            limit=limit,
                        )
                        logger.warning(
                            "schedule.rejected",
                            extra={
                                "identity_hash": hash_identity(identity),
                                "error_code": error.code,
                                **error.details,
                            },
                        )
                        raise error

        result = await self._store.increase_values(identity, request)
        logger.info(
            "schedule.created",
            extra={
                "identity_hash": hash_identity(identity),
                "buckets": sum(len(months) for months in request.values()),
                "forced": force,
            },
        )
        return result

    async def cancel_schedule(self, identity: Any, tokens: Any, force: bool = False) -> UsageMap:
        """Release previously spent tokens as a single batch.

        Args:
            identity: User or application identifier.
            tokens: Same shapes as ``create_schedule``.
            force: Skip the negative-usage check. Unlike a forced create,
                the batch is not applied verbatim: each decrement is capped at
                the bucket's current usage so counts floor at zero and never
                go negative.

        Returns:
            Post-decrement usage for every bucket in the request.

        Raises:
            UnknownMonthError: If a month designator is not recognized.
            ValidationAppError: If the identity or token counts are malformed.
            NegativeUsageError: If any bucket would drop below zero; nothing is written.
            StorageError: If the backend fails.
        """
        request = self._prepare(identity, tokens)
        usage = await self._store.get_usage(identity, months_touched(request))

        if force:
            request = {
                year: {month: min(requested, max(usage[year][month], 0)) for month, requested in months.items()}
                for year, months in request.items()
            }
        else:
            for year, months in request.items():
                for month, requested in months.items():
                    current = usage[year][month]
                    if current - requested < 0:
                        error = NegativeUsageError(year=year, month=month, requested=requested, usage=current)
                        logger.warning(
                            "schedule.rejected",
                            extra={
                                "identity_hash": hash_identity(identity),
                                "error_code": error.code,
                                **error.details,
                            },
                        )
                        raise error

        result = await self._store.decrease_values(identity, request)
        logger.info(
            "schedule.cancelled",
            extra={
                "identity_hash": hash_identity(identity),
                "buckets": sum(len(months) for months in request.values()),
                "forced": force,
            },
        )
        return result

    async def close(self) -> None:
        """Close the underlying store."""
        await self._store.close()
