"""API key authentication for the HTTP surface.

Two key sets are configured through the environment:

- ``APP_API_KEYS``: may read limits/usage and create or cancel schedules.
- ``APP_ADMIN_API_KEYS``: additionally may set limits and send ``force=true``,
  the administrative override that skips the limit/negative-usage check.

Keys are compared in constant time and only ever logged as short hashes.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Annotated

from fastapi import Header

from schedule_limiter.core.config import settings
from schedule_limiter.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> sorted(parse_api_keys("key1, key2 ,key1"))
        ['key1', 'key2']
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()
    return {key.strip() for key in keys_string.split(",") if key.strip()}


def _hash_key(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _matches(provided_key: str, valid_keys: set[str]) -> bool:
    # Check every key so timing does not reveal which one matched
    matched = False
    for key in valid_keys:
        matched |= hmac.compare_digest(provided_key.encode(), key.encode())
    return matched


def validate_api_key(provided_key: str | None, *, admin: bool = False) -> None:
    """Validate an API key against the configured key sets.

    Args:
        provided_key: Value of the X-API-Key header (may be missing).
        admin: Require an admin key rather than any valid key.

    Raises:
        AuthenticationAppError: If the key is missing, unknown, lacks admin
            rights, or no keys are configured while auth is required.
    """
    if not settings.app.api_key_required:
        return

    admin_keys = parse_api_keys(settings.app.admin_api_keys)
    valid_keys = admin_keys if admin else parse_api_keys(settings.app.api_keys) | admin_keys

    if not valid_keys:
        logger.error(
            "auth.not_configured",
            extra={"admin_required": admin},
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS / APP_ADMIN_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not provided_key:
        logger.warning("auth.missing_key", extra={"admin_required": admin})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )

    if not _matches(provided_key, valid_keys):
        logger.warning(
            "auth.invalid_key",
            extra={"admin_required": admin, "api_key_hash": _hash_key(provided_key)},
        )
        raise AuthenticationAppError(
            code="admin_key_required" if admin else "invalid_api_key",
            message="An admin API key is required" if admin else "Invalid or missing API key",
        )

    logger.debug(
        "auth.success",
        extra={"admin_required": admin, "api_key_hash": _hash_key(provided_key)},
    )


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> str | None:
    """FastAPI dependency accepting any configured key.

    Returns the key so routes can escalate to an admin check when needed.
    """
    validate_api_key(x_api_key)
    return x_api_key


async def verify_admin_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency accepting admin keys only."""
    validate_api_key(x_api_key, admin=True)
