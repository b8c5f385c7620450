"""Pydantic schemas for limit and usage endpoints."""

from __future__ import annotations

from typing import Dict, List, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr


class SetLimitRequest(BaseModel):
    """Body for setting an identity's per-month limit."""

    limit: StrictInt = Field(
        ...,
        ge=0,
        description="Maximum tokens allowed in any single (year, month) bucket.",
    )


class LimitResponse(BaseModel):
    """Current limit of an identity."""

    identity: str = Field(..., description="User or application identifier.")
    limit: int = Field(..., description="Per-bucket limit (0 when never set).")


class UsageQueryRequest(BaseModel):
    """Body for reading usage buckets."""

    months: Dict[str, List[Union[StrictInt, StrictStr]]] = Field(
        ...,
        description="Year -> month designators, e.g. {\"2015\": [\"Jan\", 2, \"3\"]}.",
    )
    include_limit: bool = Field(
        False,
        description="Also return the identity's limit.",
    )


class UsageResponse(BaseModel):
    """Usage counts for the requested buckets."""

    identity: str = Field(..., description="User or application identifier.")
    usage: Dict[int, Dict[int, int]] = Field(
        default_factory=dict,
        description="Year -> canonical month (1-12) -> tokens spent.",
    )
    limit: int | None = Field(
        default=None,
        description="Per-bucket limit, present when include_limit was requested.",
    )
