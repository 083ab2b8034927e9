"""Fixed-window admission control.

An ``AdmissionLimiter`` binds one ``RateLimitPolicy`` to a counter store and
decides, per ``(identifier, route)``, whether a request may proceed.

Windows are fixed, not sliding: a burst at the end of one window followed by
a burst at the start of the next can admit up to ``2 * max_requests`` within
a span shorter than ``window_ms``.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractCounterStore

UNKNOWN_IDENTIFIER = "unknown"

DEFAULT_DENIAL_MESSAGE = "Too many requests, please try again in {retry_after} seconds"


@dataclass(frozen=True)
class RateLimitPolicy:
    """Ceiling of requests per window.

    Attributes:
        window_ms: Window length in milliseconds.
        max_requests: Requests permitted within one window.
        message: Optional denial message; the generic one is used when None.
        name: Label used in logs and listings.
    """

    window_ms: int
    max_requests: int
    message: str | None = None
    name: str = "default"

    def __post_init__(self) -> None:
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")


# Defaults for the configurable standard and auth policies
STANDARD_POLICY = RateLimitPolicy(
    name="standard",
    window_ms=60 * 1000,
    max_requests=60,
    message="Too many requests from this IP, please try again after a minute",
)

AUTH_POLICY = RateLimitPolicy(
    name="auth",
    window_ms=15 * 60 * 1000,
    max_requests=10,
    message="Too many authentication attempts, please try again after 15 minutes",
)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Policy ceiling.
        remaining: ``max(0, limit - count)``.
        reset_at: Epoch milliseconds at which the window ends.
        count: Requests seen in the window, this one included.
        retry_after_seconds: Seconds until the window ends (denials only).
        message: Denial message (denials only).
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    count: int
    retry_after_seconds: int | None = None
    message: str | None = None

    def headers(self) -> dict[str, str]:
        """Build the quota headers describing this decision."""

        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }
        if self.retry_after_seconds is not None:
            headers["Retry-After"] = str(self.retry_after_seconds)
        return headers


def build_limiter_key(identifier: str | None, route: str) -> str:
    """Compose the counter key; a missing identifier maps to "unknown"."""

    return f"{identifier or UNKNOWN_IDENTIFIER}:{route}"


class AdmissionLimiter:
    """Per-identifier, per-route fixed-window limiter.

    Several limiters with different policies may share one store; their
    counters stay apart as long as they guard different routes, since the
    route is part of the key.
    """

    def __init__(
        self,
        policy: RateLimitPolicy,
        store: AbstractCounterStore,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            policy: Window length, ceiling and denial message.
            store: Counter table shared with the sweeper.
            clock: Time source returning UNIX time in seconds.
        """
        self._policy = policy
        self._store = store
        self._clock = clock

    @property
    def policy(self) -> RateLimitPolicy:
        return self._policy

    @property
    def store(self) -> AbstractCounterStore:
        return self._store

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def admit(self, identifier: str | None, route: str, now_ms: int | None = None) -> RateLimitDecision:
        """Count one request and decide whether it may proceed.

        Args:
            identifier: Client identifier (usually the source address).
            route: Route path the request targets.
            now_ms: Current time in epoch milliseconds; the clock is used when omitted.

        Returns:
            RateLimitDecision with the post-increment quota state.
        """
        now = self.now_ms() if now_ms is None else now_ms
        key = build_limiter_key(identifier, route)
        limit = self._policy.max_requests

        entry = self._store.hit(key, now_ms=now, window_ms=self._policy.window_ms)
        remaining = max(0, limit - entry.count)

        if entry.count <= limit:
            return RateLimitDecision(
                allowed=True,
                limit=limit,
                remaining=remaining,
                reset_at=entry.reset_at,
                count=entry.count,
            )

        retry_after = math.ceil((entry.reset_at - now) / 1000)
        message = self._policy.message or DEFAULT_DENIAL_MESSAGE.format(retry_after=retry_after)
        return RateLimitDecision(
            allowed=False,
            limit=limit,
            remaining=remaining,
            reset_at=entry.reset_at,
            count=entry.count,
            retry_after_seconds=retry_after,
            message=message,
        )
