"""HTTP middleware for request correlation and access logging.

Every request/response pair carries a request ID (taken from the incoming
header or generated) that is stored in contextvars, so log lines emitted by
the limiter and quota stores during the request are correlated with it.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from schedule_limiter.core.config import settings
from schedule_limiter.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate the request ID and log one ``http.request`` line per call.

    Adds the request ID header (``LOG_REQUEST_ID_HEADER``, default
    ``X-Request-ID``) and ``X-Request-Duration-ms`` to the response.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
