"""Rate limiting dependency for FastAPI routes.

This module wires the admission limiter into the HTTP layer.

- Routes declare ``Depends(rate_limit(policy))``.
- The counter store is owned by the application (``app.state``) so every
  app instance, and every test app, gets an isolated table.
- Allowed requests get X-RateLimit-* headers; denied ones raise
  ``RateLimitAppError`` which the exception handlers render as HTTP 429.
- Any other failure inside the limiter is logged and re-raised as
  ``AdmissionControlAppError`` so the error handlers answer with a 500
  instead of the failure escaping the request pipeline.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response

from app.adapters.rate_limit.base import AbstractCounterStore
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.core.config import RateLimitSettings, settings
from app.core.errors import AdmissionControlAppError, RateLimitAppError
from app.core.logging import hash_identifier
from app.services.admission import (
    UNKNOWN_IDENTIFIER,
    AdmissionLimiter,
    RateLimitDecision,
    RateLimitPolicy,
)

logger = logging.getLogger(__name__)


def build_policies(rate_limit_settings: RateLimitSettings) -> dict[str, RateLimitPolicy]:
    """Build the standard and auth policies from configuration.

    Args:
        rate_limit_settings: Resolved rate limit settings.

    Returns:
        Mapping of policy name to policy.
    """

    return {
        "standard": RateLimitPolicy(
            name="standard",
            window_ms=rate_limit_settings.standard_window_ms,
            max_requests=rate_limit_settings.standard_max_requests,
            message=rate_limit_settings.standard_message,
        ),
        "auth": RateLimitPolicy(
            name="auth",
            window_ms=rate_limit_settings.auth_window_ms,
            max_requests=rate_limit_settings.auth_max_requests,
            message=rate_limit_settings.auth_message,
        ),
    }


def get_counter_store(app: FastAPI) -> AbstractCounterStore:
    """Return the application's counter store, creating it on first use."""

    store = getattr(app.state, "rate_limit_store", None)
    if store is None:
        store = InMemoryCounterStore()
        app.state.rate_limit_store = store
    return store


def get_admission_limiter(app: FastAPI, policy: RateLimitPolicy) -> AdmissionLimiter:
    """Return the limiter bound to policy and the application's store.

    Limiters are cached on ``app.state`` so each policy is validated once.
    """

    store = get_counter_store(app)
    limiters: dict[RateLimitPolicy, AdmissionLimiter] | None = getattr(
        app.state, "admission_limiters", None
    )
    if limiters is None:
        limiters = {}
        app.state.admission_limiters = limiters

    limiter = limiters.get(policy)
    if limiter is None or limiter.store is not store:
        limiter = AdmissionLimiter(policy, store)
        limiters[policy] = limiter
    return limiter


def resolve_client_identifier(request: Request, *, trust_proxy_headers: bool = False) -> str:
    """Resolve the caller identifier for the request.

    Args:
        request: FastAPI request.
        trust_proxy_headers: Use the first X-Forwarded-For hop when present.

    Returns:
        Client address, or "unknown" when none can be resolved.
    """

    if trust_proxy_headers:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            first_hop = forwarded_for.split(",")[0].strip()
            if first_hop:
                return first_hop

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_IDENTIFIER


def _log_decision(decision: RateLimitDecision, *, policy: RateLimitPolicy, identifier: str, route: str) -> None:
    fields = {
        "policy": policy.name,
        "client_hash": hash_identifier(identifier),
        "route": route,
        "limit": decision.limit,
        "remaining": decision.remaining,
        "window_ms": policy.window_ms,
    }
    if decision.allowed:
        logger.debug("rate_limit.allowed", extra=fields)
        return
    logger.warning(
        "rate_limit.exceeded",
        extra={**fields, "retry_after_s": decision.retry_after_seconds},
    )


def rate_limit(policy: RateLimitPolicy) -> Callable[[Request, Response], Awaitable[None]]:
    """Create a FastAPI dependency enforcing policy per client and route.

    Usage:
        @router.get("/ping", dependencies=[Depends(rate_limit(STANDARD_POLICY))])

    Args:
        policy: Policy enforced by the dependency.

    Returns:
        Async dependency callable.
    """

    async def enforce_rate_limit(request: Request, response: Response) -> None:
        """Consume one unit of the caller's quota for this route.

        Raises:
            RateLimitAppError: 429 when the quota for the window is exhausted.
            AdmissionControlAppError: When the limiter failed unexpectedly.
        """

        cfg = settings.rate_limit
        if not cfg.enabled:
            return

        try:
            identifier = resolve_client_identifier(
                request, trust_proxy_headers=cfg.trust_proxy_headers
            )
            route = request.url.path
            limiter = get_admission_limiter(request.app, policy)
            decision = limiter.admit(identifier, route)
        except Exception as exc:
            logger.error(
                "rate_limit.internal_error",
                extra={
                    "policy": policy.name,
                    "error_type": type(exc).__name__,
                    "request_path": request.url.path,
                },
            )
            raise AdmissionControlAppError(
                code="rate_limit_internal_error",
                message="Request admission failed",
            ) from exc

        _log_decision(decision, policy=policy, identifier=identifier, route=route)

        headers = decision.headers() if cfg.include_headers else {}
        if decision.allowed:
            response.headers.update(headers)
            return

        retry_after = decision.retry_after_seconds or 0
        if not headers:
            headers = {"Retry-After": str(retry_after)}

        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message=decision.message or "Too many requests",
            details={
                "retry_after": retry_after,
                "limit": decision.limit,
                "remaining": decision.remaining,
                "reset_at": decision.reset_at,
                "policy": policy.name,
            },
            retry_after=retry_after,
            headers=headers,
        )

    return enforce_rate_limit
