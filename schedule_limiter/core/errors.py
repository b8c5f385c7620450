"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional so each error only carries what is relevant to it.
    """

    code: str
    message: str
    hint: str
    identity: str
    year: int
    month: int
    designator: str
    requested: int
    usage: int
    limit: int
    overage: int
    shortfall: int
    database_type: str
    supported_types: list[str]
    backend: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when caller input fails validation."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class ConfigurationError(AppError):
    """Raised when the limiter is constructed with an unusable configuration.

    Fatal: the caller must fix the configuration, retrying cannot help.
    """


class StorageError(AppError):
    """Raised when the backing store fails (connection, protocol, timeout)."""


class UnknownMonthError(ValidationAppError):
    """Raised when a month designator cannot be normalized."""

    def __init__(self, designator: Any) -> None:
        super().__init__(
            code="unknown_month",
            message=f"Unknown month designator: {designator!r}",
            details={
                "designator": str(designator),
                "hint": "Use a three-letter month name (e.g. 'Jan') or a number from 1 to 12",
            },
        )
        self.designator = designator


class QuotaAppError(AppError):
    """Base class for schedules rejected against the stored usage."""


class ExceedsLimitError(QuotaAppError):
    """Raised when a bucket's projected usage would exceed the identity limit."""

    def __init__(self, *, year: int, month: int, requested: int, usage: int, limit: int) -> None:
        overage = usage + requested - limit
        super().__init__(
            code="exceeds_limit",
            message=(
                f"Scheduling {requested} tokens in {year}-{month:02d} exceeds the limit "
                f"of {limit} (current usage {usage}, over by {overage})"
            ),
            details={
                "year": year,
                "month": month,
                "requested": requested,
                "usage": usage,
                "limit": limit,
                "overage": overage,
            },
        )
        self.year = year
        self.month = month
        self.requested = requested
        self.usage = usage
        self.limit = limit
        self.overage = overage


class NegativeUsageError(QuotaAppError):
    """Raised when a cancellation would drive a bucket below zero."""

    def __init__(self, *, year: int, month: int, requested: int, usage: int) -> None:
        shortfall = requested - usage
        super().__init__(
            code="negative_usage",
            message=(
                f"Cancelling {requested} tokens in {year}-{month:02d} would make usage "
                f"negative (current usage {usage})"
            ),
            details={
                "year": year,
                "month": month,
                "requested": requested,
                "usage": usage,
                "shortfall": shortfall,
            },
        )
        self.year = year
        self.month = month
        self.requested = requested
        self.usage = usage
        self.shortfall = shortfall
