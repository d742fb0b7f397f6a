"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any app import so that the global
settings object never needs real Upstash credentials.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("REDIS_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("RATE_LIMIT_MAX_REQUESTS", "10")
os.environ.setdefault("RATE_LIMIT_WINDOW_SECONDS", "10")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from app.services import rate_limiter  # noqa: E402


class FakeClock:
    """Deterministic clock shared by stores, caches and the limiter."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def reset_limiter_singleton():
    """Drop the process-wide limiter before and after a test."""
    rate_limiter.reset_instance()
    yield
    rate_limiter.reset_instance()
