"""Factory pattern for creating counter store instances."""

from app.adapters.counter_store.base import AbstractCounterStore
from app.adapters.counter_store.in_memory import InMemoryCounterStore
from app.adapters.counter_store.upstash import UpstashCounterStore
from app.core.config import StoreSettings
from app.core.errors import ConfigAppError


def create_counter_store(store_settings: StoreSettings) -> AbstractCounterStore:
    """Factory function to instantiate counter stores based on backend.

    Validates backend-specific requirements and routes to the appropriate
    store. Connection parameters are read once here; they are never
    re-read afterwards.

    Args:
        store_settings: Resolved store settings.

    Returns:
        AbstractCounterStore: Configured counter store instance.

    Raises:
        ConfigAppError: If backend-specific requirements are not met.
    """
    backend = store_settings.backend.lower()

    if backend == "upstash":
        if not store_settings.url:
            raise ConfigAppError(
                code="store_missing_url",
                message="Upstash backend requires REDIS_URL environment variable",
                details={"setting": "REDIS_URL"},
            )
        if not store_settings.token:
            raise ConfigAppError(
                code="store_missing_token",
                message="Upstash backend requires REDIS_TOKEN environment variable",
                details={"setting": "REDIS_TOKEN"},
            )
        return UpstashCounterStore(
            url=store_settings.url,
            token=store_settings.token,
            timeout_seconds=store_settings.timeout_seconds,
            retry_backoff_seconds=store_settings.retry_backoff_seconds,
        )

    if backend == "memory":
        return InMemoryCounterStore()

    raise ConfigAppError(
        code="store_unknown_backend",
        message=(
            f"Unknown counter store backend: '{backend}'. Supported backends: upstash, memory"
        ),
        details={"setting": "REDIS_BACKEND"},
    )
