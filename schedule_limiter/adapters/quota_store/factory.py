"""Factory pattern for creating quota store instances."""

import logging

from schedule_limiter.adapters.quota_store.base import AbstractQuotaStore
from schedule_limiter.adapters.quota_store.in_memory import InMemoryQuotaStore
from schedule_limiter.adapters.quota_store.redis_store import RedisQuotaStore
from schedule_limiter.core.config import DatabaseSettings
from schedule_limiter.core.errors import ConfigurationError
from schedule_limiter.utils.keys import DEFAULT_TAG

logger = logging.getLogger(__name__)

SUPPORTED_DATABASE_TYPES = ("memory", "redis")


def create_quota_store(database: DatabaseSettings) -> AbstractQuotaStore:
    """Instantiate the quota store selected by ``database.type``.

    Args:
        database: Backend type (case-insensitive) and backend options.

    Returns:
        AbstractQuotaStore: Configured store instance.

    Raises:
        ConfigurationError: If the backend type is unknown.
    """
    database_type = database.type.lower()

    if database_type == "memory":
        store: AbstractQuotaStore = InMemoryQuotaStore(tag=database.options.get("tag", DEFAULT_TAG))
    elif database_type == "redis":
        store = RedisQuotaStore.from_options(database.options)
    else:
        raise ConfigurationError(
            code="unknown_database_type",
            message=(
                f"Unknown database type: '{database.type}'. "
                f"Supported types: {', '.join(SUPPORTED_DATABASE_TYPES)}"
            ),
            details={
                "database_type": database.type,
                "supported_types": list(SUPPORTED_DATABASE_TYPES),
            },
        )

    logger.info(
        "quota_store.created",
        extra={"backend": database_type, "store": type(store).__name__},
    )
    return store
