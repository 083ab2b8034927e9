"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.services.admission import AUTH_POLICY, STANDARD_POLICY


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_server_settings() -> "ServerSettings":
    """Build server settings from environment."""

    return ServerSettings()


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment."""

    return RateLimitSettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    host: str = Field(
        "0.0.0.0",
        description="Interface the server binds to",
    )
    port: int = Field(
        5000,
        description="Port the server listens on",
        ge=1,
        le=65535,
    )
    client_url: str = Field(
        "http://localhost:3000",
        description="Public URL of the frontend client served alongside this API",
    )
    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Admission control configuration.

    Window sizes are expressed in milliseconds. Two policies are configured:
    a standard one for general API traffic and a stricter one for
    authentication endpoints.
    """

    enabled: bool = Field(
        True,
        description="Enable per-client, per-route rate limiting",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers on limited responses",
    )
    trust_proxy_headers: bool = Field(
        False,
        description="Resolve the client address from X-Forwarded-For (only behind a trusted proxy)",
    )

    standard_window_ms: int = Field(
        STANDARD_POLICY.window_ms,
        description="Window size of the standard policy in milliseconds",
        ge=1,
    )
    standard_max_requests: int = Field(
        STANDARD_POLICY.max_requests,
        description="Maximum requests per window for the standard policy",
        ge=1,
    )
    standard_message: str | None = Field(
        STANDARD_POLICY.message,
        description="Denial message of the standard policy (None uses the generic message)",
    )

    auth_window_ms: int = Field(
        AUTH_POLICY.window_ms,
        description="Window size of the authentication policy in milliseconds",
        ge=1,
    )
    auth_max_requests: int = Field(
        AUTH_POLICY.max_requests,
        description="Maximum requests per window for the authentication policy",
        ge=1,
    )
    auth_message: str | None = Field(
        AUTH_POLICY.message,
        description="Denial message of the authentication policy",
    )

    sweep_enabled: bool = Field(
        True,
        description="Run the periodic sweep that discards expired counters",
    )
    sweep_interval_seconds: float = Field(
        600.0,
        description="Seconds between two sweeps of expired counters",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (default logs/app.log)",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Number of rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    server: ServerSettings = Field(default_factory=_build_server_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()
