"""Application-level exception types.

Errors raised by the admission layer and the routes. The exception handlers
map each type to an HTTP status; nothing here renders a response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    retry_after: int
    limit: int
    remaining: int
    reset_at: int
    policy: str


@dataclass
class AppError(Exception):
    """Base error for application failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for clients and logs.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client exhausted its quota for a route (HTTP 429).

    Attributes:
        retry_after: Seconds until the current window ends.
        headers: Quota headers (X-RateLimit-*, Retry-After) for the response.
    """

    retry_after: int = 0
    headers: dict[str, str] = field(default_factory=dict)


class AdmissionControlAppError(AppError):
    """Raised when the limiter itself failed unexpectedly."""
