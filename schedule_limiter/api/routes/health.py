from __future__ import annotations

from fastapi import APIRouter

from schedule_limiter.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check for load balancers; reports the configured store type."""

    return {"status": "ok", "database": settings.database.type.lower()}
