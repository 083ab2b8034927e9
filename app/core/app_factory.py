from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, counter store, sweeper lifespan,
middleware, handlers, routers) so tests can build isolated instances.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.adapters.rate_limit.base import AbstractCounterStore
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.api.routes import health_router, limits_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.services.counter_sweeper import CounterSweeper


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    sweeper: CounterSweeper | None = None
    if settings.rate_limit.sweep_enabled:
        sweeper = CounterSweeper(
            app.state.rate_limit_store,
            interval_seconds=settings.rate_limit.sweep_interval_seconds,
        )
        sweeper.start()
    app.state.counter_sweeper = sweeper
    try:
        yield
    finally:
        if sweeper is not None:
            await sweeper.stop()


def create_app(*, store: AbstractCounterStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        store: Counter store to use; a fresh in-memory table when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Admission Limiter API",
        description=(
            "REST API with per-client, per-route fixed-window rate limiting. "
            "Every limited response carries X-RateLimit-Limit, "
            "X-RateLimit-Remaining and X-RateLimit-Reset; denied requests get "
            "HTTP 429 with Retry-After."
        ),
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.state.rate_limit_store = store if store is not None else InMemoryCounterStore()

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(limits_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
