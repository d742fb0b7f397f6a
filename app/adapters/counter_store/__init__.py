"""Counter store adapter layer - abstracts over the shared key-value store."""

from app.adapters.counter_store.base import AbstractCounterStore
from app.adapters.counter_store.factory import create_counter_store
from app.adapters.counter_store.in_memory import InMemoryCounterStore
from app.adapters.counter_store.upstash import UpstashCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "UpstashCounterStore",
    "create_counter_store",
]
