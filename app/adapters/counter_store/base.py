"""Counter store interface.

The limiter only needs three primitives from the shared key-value store:
an atomic increment that also refreshes expiry, a batched non-mutating read
and a delete. Cross-instance correctness relies entirely on the store's
atomic increment.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class AbstractCounterStore(ABC):
    """Interface for shared counter stores."""

    @abstractmethod
    def increment_and_get(self, key: str, ttl_seconds: int) -> int:
        """Atomically increment ``key`` and refresh its expiry.

        Args:
            key: Counter key. Created at 0 when absent.
            ttl_seconds: Expiry applied to the key after the increment.

        Returns:
            The post-increment value.

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    def get_many(self, keys: Sequence[str]) -> dict[str, int]:
        """Read several counters without mutating them.

        Args:
            keys: Counter keys to read.

        Returns:
            Mapping of every requested key to its value (0 when absent).

        Raises:
            StoreUnavailableError: If the store cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, keys: Sequence[str]) -> int:
        """Remove counters.

        Returns:
            Number of keys that existed and were removed.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release any resources held by the store."""
