from __future__ import annotations

from schedule_limiter.api.routes.health import router as health_router
from schedule_limiter.api.routes.limits import router as limits_router
from schedule_limiter.api.routes.schedules import router as schedules_router

__all__ = ["health_router", "limits_router", "schedules_router"]
