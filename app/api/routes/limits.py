from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.rate_limit import build_policies, rate_limit
from app.schemas.rate_limit import PolicyInfo, RateLimitsResponse, StatusResponse

router = APIRouter(tags=["Rate Limits"])

_policies = build_policies(settings.rate_limit)
standard_policy = _policies["standard"]
auth_policy = _policies["auth"]


@router.get(
    "/ping",
    response_model=StatusResponse,
    dependencies=[Depends(rate_limit(standard_policy))],
)
async def ping() -> StatusResponse:
    """Lightweight endpoint guarded by the standard policy."""

    return StatusResponse(status="ok")


@router.post(
    "/auth/attempt",
    response_model=StatusResponse,
    dependencies=[Depends(rate_limit(auth_policy))],
)
async def auth_attempt() -> StatusResponse:
    """Stand-in for an authentication endpoint, guarded by the strict policy.

    No credentials are checked here; the route exists so the auth policy is
    enforced on a real path.
    """

    return StatusResponse(status="accepted")


@router.get(
    "/rate-limits",
    response_model=RateLimitsResponse,
    dependencies=[Depends(rate_limit(standard_policy))],
)
async def list_rate_limits() -> RateLimitsResponse:
    """List the configured policies.

    Returns:
        RateLimitsResponse: Whether limiting is enabled, plus each policy.
    """

    return RateLimitsResponse(
        enabled=settings.rate_limit.enabled,
        policies=[
            PolicyInfo(
                name=policy.name,
                window_ms=policy.window_ms,
                max_requests=policy.max_requests,
                message=policy.message,
            )
            for policy in _policies.values()
        ],
    )
