from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from schedule_limiter.core.auth import validate_api_key, verify_api_key
from schedule_limiter.core.limiter import get_schedule_limiter
from schedule_limiter.schemas.schedules import ScheduleRequest, ScheduleResponse
from schedule_limiter.services.schedule_limiter import ScheduleLimiter

router = APIRouter(tags=["Schedules"])

Limiter = Annotated[ScheduleLimiter, Depends(get_schedule_limiter)]
ApiKey = Annotated[str | None, Depends(verify_api_key)]


@router.post("/identities/{identity}/schedules", response_model=ScheduleResponse)
async def create_schedule(
    identity: str,
    body: ScheduleRequest,
    limiter: Limiter,
    api_key: ApiKey,
) -> ScheduleResponse:
    """Spend tokens against one or more month buckets.

    The whole batch is rejected with 409 ``exceeds_limit`` if any bucket
    would go over the identity's limit. ``force`` requires an admin key.
    """
    if body.force:
        validate_api_key(api_key, admin=True)
    usage = await limiter.create_schedule(identity, body.tokens, force=body.force)
    return ScheduleResponse(identity=identity, usage=usage)


@router.post("/identities/{identity}/schedules/cancel", response_model=ScheduleResponse)
async def cancel_schedule(
    identity: str,
    body: ScheduleRequest,
    limiter: Limiter,
    api_key: ApiKey,
) -> ScheduleResponse:
    """Release previously spent tokens.

    The whole batch is rejected with 409 ``negative_usage`` if any bucket
    would drop below zero. With ``force`` (admin key) buckets floor at zero.
    """
    if body.force:
        validate_api_key(api_key, admin=True)
    usage = await limiter.cancel_schedule(identity, body.tokens, force=body.force)
    return ScheduleResponse(identity=identity, usage=usage)
