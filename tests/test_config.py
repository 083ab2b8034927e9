"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from app.core.config import LogSettings, RateLimitSettings, ServerSettings
from app.core.rate_limit import build_policies
from app.services.admission import AUTH_POLICY, STANDARD_POLICY


def test_rate_limit_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_STANDARD_WINDOW_MS", "1000")
    monkeypatch.setenv("RATE_LIMIT_STANDARD_MAX_REQUESTS", "3")
    monkeypatch.setenv("RATE_LIMIT_AUTH_MESSAGE", "nope")

    cfg = RateLimitSettings()
    policies = build_policies(cfg)

    assert policies["standard"].window_ms == 1000
    assert policies["standard"].max_requests == 3
    assert policies["auth"].message == "nope"


def test_rate_limit_settings_reject_zero_ceiling(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_AUTH_MAX_REQUESTS", "0")

    with pytest.raises(ValidationError):
        RateLimitSettings()


def test_server_and_log_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SERVER_PORT", raising=False)
    monkeypatch.delenv("LOG_REQUEST_ID_HEADER", raising=False)

    assert ServerSettings().port == 5000
    assert LogSettings().request_id_header == "X-Request-ID"
    assert RateLimitSettings().sweep_interval_seconds == 600.0


def test_rate_limit_defaults_follow_predefined_policies(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "STANDARD_WINDOW_MS",
        "STANDARD_MAX_REQUESTS",
        "STANDARD_MESSAGE",
        "AUTH_WINDOW_MS",
        "AUTH_MAX_REQUESTS",
        "AUTH_MESSAGE",
    ):
        monkeypatch.delenv(f"RATE_LIMIT_{name}", raising=False)

    policies = build_policies(RateLimitSettings())

    assert policies["standard"] == STANDARD_POLICY
    assert policies["auth"] == AUTH_POLICY


def test_client_url_is_plain_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SERVER_CLIENT_URL", "https://app.example.com")

    assert ServerSettings().client_url == "https://app.example.com"
    description = ServerSettings.model_fields["client_url"].description
    assert "CORS" not in description
    assert "redirect" not in description
