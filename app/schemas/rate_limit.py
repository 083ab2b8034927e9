"""Pydantic schemas for rate-limited endpoints."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    """Minimal acknowledgement payload."""

    status: str = Field(..., description="Outcome label, e.g. 'ok' or 'accepted'.")


class PolicyInfo(BaseModel):
    """Public description of one configured rate limit policy."""

    name: str = Field(..., description="Policy label (e.g. 'standard', 'auth').")
    window_ms: int = Field(..., description="Window length in milliseconds.")
    max_requests: int = Field(..., description="Requests permitted per window.")
    message: str | None = Field(
        default=None,
        description="Denial message; null means the generic retry message is used.",
    )


class RateLimitsResponse(BaseModel):
    """Configured policies and whether limiting is active."""

    enabled: bool = Field(..., description="Whether admission control is enforced.")
    policies: List[PolicyInfo] = Field(default_factory=list)
