"""Schedule limiter dependency for FastAPI routes.

This module wires the limiter service and its quota store into the HTTP
layer. Routes depend on ``get_schedule_limiter`` only, so tests can swap the
instance through ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging

from schedule_limiter.adapters.quota_store.factory import create_quota_store
from schedule_limiter.core.config import DatabaseSettings, settings
from schedule_limiter.services.schedule_limiter import ScheduleLimiter

logger = logging.getLogger(__name__)


_limiter: ScheduleLimiter | None = None
_limiter_config: DatabaseSettings | None = None


async def get_schedule_limiter() -> ScheduleLimiter:
    """Return a process-wide limiter instance.

    The instance is cached in-module so the store connection is shared across
    requests. If the database configuration changes (primarily in tests), the
    limiter is rebuilt and the previous store is closed.

    Returns:
        ScheduleLimiter: Configured limiter instance.

    Raises:
        ConfigurationError: If the configured backend type is unknown.
    """

    global _limiter, _limiter_config

    config = settings.database
    if _limiter is None or _limiter_config != config:
        stale = _limiter
        _limiter = ScheduleLimiter(create_quota_store(config))
        _limiter_config = config
        if stale is not None:
            await stale.close()
            logger.info("schedule_limiter.replaced", extra={"database_type": config.type.lower()})

    return _limiter


async def close_schedule_limiter() -> None:
    """Close the cached limiter's store, if one was created."""

    global _limiter, _limiter_config

    if _limiter is None:
        return
    limiter, _limiter, _limiter_config = _limiter, None, None
    await limiter.close()
    logger.info("schedule_limiter.closed")
