"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Settings are read once at import time. There is no hot-reload: the rate
limiter is built from the values present at startup.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


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

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_store_settings() -> "StoreSettings":
    """Build counter store settings from environment."""

    return StoreSettings()


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment."""

    return RateLimitSettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


class StoreSettings(BaseSettings):
    """Counter store connection configuration.

    The default backend talks to Upstash Redis over its REST API and needs
    both REDIS_URL and REDIS_TOKEN. Credential validation happens in the
    store factory so that a missing value fails startup with a ConfigAppError.
    """

    backend: str = Field(
        "upstash",
        description="Counter store backend (upstash, memory)",
    )
    url: str | None = Field(
        None,
        description="Upstash Redis REST URL (e.g., https://xyz.upstash.io)",
    )
    token: str | None = Field(
        None,
        description="Upstash Redis REST token",
    )
    timeout_seconds: float = Field(
        2.0,
        description="Per-call timeout for counter store requests",
        gt=0,
    )
    retry_backoff_seconds: float = Field(
        0.1,
        description="Pause before the single retry on transient transport errors",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Sliding-window rate limit configuration."""

    enabled: bool = Field(
        True,
        description="Enable rate limiting on protected routes",
    )
    max_requests: int = Field(
        10,
        description="Maximum number of requests allowed per window (per identifier)",
        ge=1,
    )
    window_seconds: int = Field(
        10,
        description="Sliding window length in seconds",
        ge=1,
    )
    cache_capacity: int = Field(
        1024,
        description="Maximum number of identifiers kept in the local verdict cache",
        ge=1,
    )
    prefix: str = Field(
        "ratelimit",
        description="Namespace prepended to every counter key",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    fallback_identifier: str = Field(
        "anonymous",
        description="Identifier used when the client address is unavailable",
        min_length=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(
        "INFO",
        description="Root log level",
    )
    format: str = Field(
        "json",
        description="Log format (json, plain)",
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.

    Environments:
    - development: Local development
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    store: StoreSettings = Field(default_factory=_build_store_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
