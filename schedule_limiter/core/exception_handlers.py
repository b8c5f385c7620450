"""Global exception handlers for consistent error responses.

Every error leaves the API as::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": {...}}}

Status codes follow the limiter's error taxonomy:

- ValidationAppError (incl. UnknownMonthError) → 400
- AuthenticationAppError → 403
- ExceedsLimitError / NegativeUsageError → 409, the batch was rejected whole
- ConfigurationError → 500
- StorageError → 503, the quota store is unreachable
- anything else → 500 with a generic message
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from schedule_limiter.core.errors import (
    AppError,
    AuthenticationAppError,
    ConfigurationError,
    QuotaAppError,
    StorageError,
)
from schedule_limiter.core.logging import get_request_id

logger = logging.getLogger(__name__)

# Most specific first; ValidationAppError and plain AppError fall through to 400
_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (AuthenticationAppError, 403),
    (QuotaAppError, 409),
    (StorageError, 503),
    (ConfigurationError, 500),
)


def status_for(exc: AppError) -> int:
    """Return the HTTP status code for a domain error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_response(status_code: int, code: str, message: str, details: Any = None) -> JSONResponse:
    content: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content={"error": content})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Translate an AppError into its JSON error response."""
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
        },
    )
    return _error_response(status_code, exc.code, exc.message, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies in the same envelope as domain errors."""
    logger.warning(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(exc.errors())},
    )
    return _error_response(
        422,
        "invalid_request",
        "Request body or parameters failed validation",
        {"context": {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]}},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for unexpected errors; never leaks exception text to clients."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return _error_response(
        500,
        "internal_server_error",
        "An unexpected error occurred. Please try again later.",
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
