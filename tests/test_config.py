"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from app.core.config import LogSettings, RateLimitSettings, StoreSettings


def test_rate_limit_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("RATE_LIMIT_MAX_REQUESTS", "RATE_LIMIT_WINDOW_SECONDS", "RATE_LIMIT_ENABLED"):
        monkeypatch.delenv(name, raising=False)

    rl = RateLimitSettings()

    assert rl.enabled is True
    assert rl.max_requests == 10
    assert rl.window_seconds == 10
    assert rl.cache_capacity == 1024
    assert rl.fallback_identifier == "anonymous"


def test_store_settings_read_redis_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_BACKEND", "upstash")
    monkeypatch.setenv("REDIS_URL", "https://example.upstash.io")
    monkeypatch.setenv("REDIS_TOKEN", "AX-token")
    monkeypatch.setenv("REDIS_TIMEOUT_SECONDS", "0.75")

    store = StoreSettings()

    assert store.backend == "upstash"
    assert store.url == "https://example.upstash.io"
    assert store.token == "AX-token"
    assert store.timeout_seconds == 0.75


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("RATE_LIMIT_MAX_REQUESTS", "0"),
        ("RATE_LIMIT_WINDOW_SECONDS", "0"),
        ("RATE_LIMIT_CACHE_CAPACITY", "0"),
    ],
)
def test_rate_limit_rejects_non_positive_values(monkeypatch: pytest.MonkeyPatch, name, value) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        RateLimitSettings()


def test_store_rejects_non_positive_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_TIMEOUT_SECONDS", "0")

    with pytest.raises(ValidationError):
        StoreSettings()


def test_log_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    log = LogSettings()

    assert log.level == "INFO"
    assert log.format == "json"
    assert log.request_id_header == "X-Request-ID"
