"""Tests for global exception handlers.

Validates that every error type maps to the right status code with a
consistent body and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    AdmissionControlAppError,
    AppError,
    ErrorDetails,
    RateLimitAppError,
)
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_plain_app_error_returns_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-app-error")
        async def test_endpoint():
            raise AppError(code="store_unavailable", message="Counter store unavailable")

        response = client.get("/test-app-error")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["code"] == "store_unavailable"
        assert data["error"]["message"] == "Counter store unavailable"
        assert "request_id" in data["error"]

    def test_rate_limit_error_returns_429_with_headers(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-rate-limit")
        async def test_endpoint():
            raise RateLimitAppError(
                code="rate_limit_exceeded",
                message="Too many requests, please try again in 12 seconds",
                details={"retry_after": 12, "limit": 5},
                retry_after=12,
                headers={
                    "Retry-After": "12",
                    "X-RateLimit-Limit": "5",
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": "1700000012000",
                },
            )

        response = client.get("/test-rate-limit")

        assert response.status_code == 429
        data = response.json()
        assert data["error"]["retry_after"] == 12
        assert data["error"]["details"]["limit"] == 5
        assert response.headers["Retry-After"] == "12"
        assert response.headers["X-RateLimit-Reset"] == "1700000012000"

    def test_rate_limit_error_without_headers_still_sets_retry_after(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-rate-limit-bare")
        async def test_endpoint():
            raise RateLimitAppError(code="rate_limit_exceeded", message="slow down", retry_after=3)

        response = client.get("/test-rate-limit-bare")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "3"

    def test_admission_control_error_returns_500(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-admission")
        async def test_endpoint():
            raise AdmissionControlAppError(
                code="rate_limit_internal_error", message="Request admission failed"
            )

        response = client.get("/test-admission")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "rate_limit_internal_error"

    def test_error_response_format_is_consistent(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-format")
        async def test_endpoint():
            raise AppError(code="test", message="test")

        data = client.get("/test-format").json()

        assert "error" in data
        assert "code" in data["error"]
        assert "message" in data["error"]
        assert "request_id" in data["error"]
        assert "details" not in data["error"]


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_general_exception_handler_logic(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("Unexpected error: counter table corrupted")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "counter table" not in data["error"]["message"]
        assert "request_id" in data["error"]

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("details")))

        response_text = bytes(response.body).decode()
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text


class TestErrorHandlerIntegration:
    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers


def test_error_details_cover_rate_limit_fields_only() -> None:
    assert ErrorDetails.__optional_keys__ == frozenset(
        {"retry_after", "limit", "remaining", "reset_at", "policy"}
    )
