"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from schedule_limiter.api.routes import health_router, limits_router, schedules_router
from schedule_limiter.core.config import settings
from schedule_limiter.core.exception_handlers import setup_exception_handlers
from schedule_limiter.core.limiter import close_schedule_limiter
from schedule_limiter.core.logging import configure_logging
from schedule_limiter.core.middleware import request_id_middleware
from schedule_limiter.core.openapi import apply_openapi_customizations


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Release the shared store connection pool on shutdown
    await close_schedule_limiter()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Schedule Limiter API",
        description=(
            "Per-identity, month-granular token quotas. Set a limit per identity, "
            "then create or cancel schedules that spend tokens against (year, month) "
            "buckets; each batch is validated and committed all-or-nothing."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(limits_router, prefix="/v1")
    app.include_router(schedules_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
