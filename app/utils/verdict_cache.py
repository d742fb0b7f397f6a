"""In-memory verdict cache used to skip counter store round-trips.

Holds the last verdict computed for each identifier. The limiter only
trusts an entry while it is younger than one window; older entries are
evicted on read. The cache is LRU-bounded so that callers cycling through
many identifiers cannot grow it without limit.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import Verdict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Cached verdict with the time it was computed."""

    verdict: Verdict
    computed_at: float


class VerdictCache:
    """Thread-safe, in-memory verdict cache with LRU eviction.

    Attributes:
        capacity: Maximum number of cached identifiers.
    """

    def __init__(self, capacity: int = 1024, *, clock: Callable[[], float] = time.time) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self.capacity = capacity
        self._clock = clock
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"VerdictCache(capacity={self.capacity}, size={len(self._store)}, "
            f"hits={self._hits}, misses={self._misses}, evictions={self._evictions})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def get(self, identifier: str, max_age_seconds: float) -> CacheEntry | None:
        """Return the entry for ``identifier`` if it is younger than ``max_age_seconds``.

        Args:
            identifier: Caller identity.
            max_age_seconds: Oldest acceptable entry age.

        Returns:
            Cached entry or None if not found/stale.
        """

        with self._lock:
            entry = self._store.get(identifier)
            if entry is None:
                self._misses += 1
                return None

            if self._clock() - entry.computed_at > max_age_seconds:
                self._evict_single(identifier)
                self._misses += 1
                logger.debug("verdict_cache.stale", extra={"size": len(self._store)})
                return None

            self._hits += 1
            self._store.move_to_end(identifier)  # mark as recently used
            return entry

    def set(self, identifier: str, verdict: Verdict) -> None:
        """Store the latest verdict for ``identifier``, evicting as needed."""

        with self._lock:
            self._store[identifier] = CacheEntry(verdict=verdict, computed_at=self._clock())
            self._store.move_to_end(identifier)
            self._evict_if_over_capacity_locked()

    def discard(self, identifier: str) -> None:
        """Drop the entry for ``identifier`` if present."""

        with self._lock:
            self._store.pop(identifier, None)

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0

    def stats(self) -> dict[str, int]:
        """Return lightweight cache metrics without exposing identifiers."""

        with self._lock:
            return {
                "capacity": self.capacity,
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def _evict_single(self, identifier: str) -> None:
        if identifier in self._store:
            self._store.pop(identifier, None)
            self._evictions += 1

    def _evict_if_over_capacity_locked(self) -> None:
        while len(self._store) > self.capacity:
            # popitem(last=False) removes the least recently used entry
            self._store.popitem(last=False)
            self._evictions += 1
