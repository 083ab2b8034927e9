from __future__ import annotations

from fastapi import APIRouter, Request

from app.core.rate_limit import get_counter_store

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Health check endpoint.

    Never rate limited. Reports the size of the counter table so operators
    can see the sweep keeping it bounded.

    Returns:
        dict: ``status`` ("ok") and ``rate_limit_entries``.
    """

    return {"status": "ok", "rate_limit_entries": len(get_counter_store(request.app))}
