"""Tests for the counter store factory and its configuration errors."""

import pytest

from app.adapters.counter_store.factory import create_counter_store
from app.adapters.counter_store.in_memory import InMemoryCounterStore
from app.adapters.counter_store.upstash import UpstashCounterStore
from app.core.config import StoreSettings
from app.core.errors import ConfigAppError


def test_upstash_backend_with_credentials() -> None:
    store = create_counter_store(
        StoreSettings(backend="upstash", url="https://example.upstash.io", token="t")
    )
    try:
        assert isinstance(store, UpstashCounterStore)
    finally:
        store.close()


def test_memory_backend_needs_no_credentials() -> None:
    store = create_counter_store(StoreSettings(backend="memory", url=None, token=None))

    assert isinstance(store, InMemoryCounterStore)


def test_backend_name_is_case_insensitive() -> None:
    store = create_counter_store(StoreSettings(backend="MEMORY"))

    assert isinstance(store, InMemoryCounterStore)


@pytest.mark.parametrize(
    ("url", "token", "code"),
    [
        (None, "t", "store_missing_url"),
        ("https://example.upstash.io", None, "store_missing_token"),
        ("", "", "store_missing_url"),
    ],
)
def test_missing_credentials_raise_config_error(url, token, code) -> None:
    with pytest.raises(ConfigAppError) as exc_info:
        create_counter_store(StoreSettings(backend="upstash", url=url, token=token))

    assert exc_info.value.code == code


def test_unknown_backend_raises_config_error() -> None:
    with pytest.raises(ConfigAppError) as exc_info:
        create_counter_store(StoreSettings(backend="memcached"))

    assert exc_info.value.code == "store_unknown_backend"
