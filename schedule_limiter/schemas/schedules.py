"""Pydantic schemas for schedule create/cancel endpoints."""

from __future__ import annotations

from typing import Dict, Union

from pydantic import BaseModel, Field, StrictInt


TokensPayload = Union[StrictInt, Dict[str, Dict[str, StrictInt]], Dict[str, StrictInt]]


class ScheduleRequest(BaseModel):
    """Tokens to spend or release, plus the administrative override flag."""

    tokens: TokensPayload = Field(
        ...,
        description=(
            "Either an integer (current month), a {month: tokens} mapping (current year) "
            "or a {year: {month: tokens}} mapping. Months may be 'Jan'..'Dec' or 1..12."
        ),
    )
    force: bool = Field(
        False,
        description="Bypass the limit / negative-usage check.",
    )


class ScheduleResponse(BaseModel):
    """Usage of every bucket touched by the schedule, after the change."""

    identity: str = Field(..., description="User or application identifier.")
    usage: Dict[int, Dict[int, int]] = Field(
        default_factory=dict,
        description="Year -> canonical month (1-12) -> tokens spent.",
    )
