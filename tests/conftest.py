"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables must be set before anything imports the settings
module, which reads them once at import time.
"""

import os
from datetime import date

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_TYPE"] = "memory"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("APP_ADMIN_API_KEYS", "test-admin-key-789")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from schedule_limiter.adapters.quota_store.in_memory import InMemoryQuotaStore  # noqa: E402
from schedule_limiter.services.schedule_limiter import ScheduleLimiter  # noqa: E402

TODAY = date(2015, 3, 14)


@pytest.fixture
def store() -> InMemoryQuotaStore:
    """Fresh in-memory quota store."""
    return InMemoryQuotaStore()


@pytest.fixture
def limiter(store: InMemoryQuotaStore) -> ScheduleLimiter:
    """Limiter over the in-memory store with the clock pinned to 2015-03-14."""
    return ScheduleLimiter(store, today=lambda: TODAY)
