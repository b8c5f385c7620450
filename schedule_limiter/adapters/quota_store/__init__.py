"""Quota store adapters.

This package keeps the limiter independent of where limits and usage are
stored: an in-memory store for tests and single-process use, and Redis for
shared, persistent deployments.
"""

from schedule_limiter.adapters.quota_store.base import AbstractQuotaStore
from schedule_limiter.adapters.quota_store.factory import create_quota_store
from schedule_limiter.adapters.quota_store.in_memory import InMemoryQuotaStore
from schedule_limiter.adapters.quota_store.redis_store import RedisQuotaStore

__all__ = [
    "AbstractQuotaStore",
    "InMemoryQuotaStore",
    "RedisQuotaStore",
    "create_quota_store",
]
