from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from schedule_limiter.core.auth import verify_admin_api_key, verify_api_key
from schedule_limiter.core.limiter import get_schedule_limiter
from schedule_limiter.schemas.limits import (
    LimitResponse,
    SetLimitRequest,
    UsageQueryRequest,
    UsageResponse,
)
from schedule_limiter.services.schedule_limiter import ScheduleLimiter

router = APIRouter()

Limiter = Annotated[ScheduleLimiter, Depends(get_schedule_limiter)]


@router.put(
    "/identities/{identity}/limit",
    response_model=LimitResponse,
    tags=["Limits"],
    dependencies=[Depends(verify_admin_api_key)],
)
async def set_limit(identity: str, body: SetLimitRequest, limiter: Limiter) -> LimitResponse:
    """Set the per-month limit for an identity (admin only)."""
    limit = await limiter.set_limit(identity, body.limit)
    return LimitResponse(identity=identity, limit=limit)


@router.get(
    "/identities/{identity}/limit",
    response_model=LimitResponse,
    tags=["Limits"],
    dependencies=[Depends(verify_api_key)],
)
async def get_limit(identity: str, limiter: Limiter) -> LimitResponse:
    """Return an identity's limit; 0 when it was never set."""
    return LimitResponse(identity=identity, limit=await limiter.get_limit(identity))


@router.post(
    "/identities/{identity}/usage",
    response_model=UsageResponse,
    tags=["Usage"],
    dependencies=[Depends(verify_api_key)],
)
async def get_usage(identity: str, body: UsageQueryRequest, limiter: Limiter) -> UsageResponse:
    """Read usage for the requested ``{year: [months]}`` buckets.

    Month designators may be names ("Jan"), numeric strings or integers;
    the response always uses canonical month numbers.
    """
    usage = await limiter.get_usage(identity, body.months, include_limit=body.include_limit)
    limit = usage.pop("limit", None)
    return UsageResponse(identity=identity, usage=usage, limit=limit)
