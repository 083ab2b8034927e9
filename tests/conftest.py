"""Pytest configuration and fixtures shared across all test modules.

Loaded by pytest before any test module, so environment defaults are in
place before app settings are created.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("RATE_LIMIT_TRUST_PROXY_HEADERS", "false")

import pytest

from app.adapters.rate_limit.in_memory import InMemoryCounterStore


class FakeTime:
    """Deterministic clock used to test window expiry."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def time(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def store() -> InMemoryCounterStore:
    """Fresh, isolated counter table."""
    return InMemoryCounterStore()
