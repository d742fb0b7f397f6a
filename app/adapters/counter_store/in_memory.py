"""In-memory counter store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Meant for local development and tests; production uses the Upstash store.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable

from app.adapters.counter_store.base import AbstractCounterStore


@dataclass
class _Counter:
    value: int
    expires_at: float
    seq: int


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store keeping values in a dict with per-key expiry.

    Expired keys behave as absent. A min-heap of expiry times lets every
    write drop the counters whose TTL has passed, including keys nobody
    reads again (past buckets, clients that went away), so the dict only
    holds live counters plus those expired since the last write.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the store.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._counters: dict[str, _Counter] = {}
        # (expires_at, seq, key); an entry whose seq no longer matches the
        # stored counter belongs to a deleted key and is discarded.
        self._expiry_heap: list[tuple[float, int, str]] = []
        self._seq = itertools.count()

    def _live_counter_locked(self, key: str, now: float) -> _Counter | None:
        counter = self._counters.get(key)
        if counter is not None and counter.expires_at <= now:
            del self._counters[key]
            return None
        return counter

    def _track_locked(self, key: str, counter: _Counter) -> None:
        heapq.heappush(self._expiry_heap, (counter.expires_at, counter.seq, key))

    def _sweep_locked(self, now: float) -> None:
        heap = self._expiry_heap
        while heap and heap[0][0] <= now:
            _, seq, key = heapq.heappop(heap)
            counter = self._counters.get(key)
            if counter is None or counter.seq != seq:
                continue
            if counter.expires_at <= now:
                del self._counters[key]
            else:
                # Expiry was refreshed after this entry was pushed.
                self._track_locked(key, counter)

    def increment_and_get(self, key: str, ttl_seconds: int) -> int:
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        now = self._clock()
        with self._lock:
            self._sweep_locked(now)
            counter = self._live_counter_locked(key, now)
            if counter is None:
                counter = _Counter(value=0, expires_at=now + ttl_seconds, seq=next(self._seq))
                self._counters[key] = counter
                self._track_locked(key, counter)
            counter.value += 1
            counter.expires_at = now + ttl_seconds
            return counter.value

    def get_many(self, keys: Sequence[str]) -> dict[str, int]:
        now = self._clock()
        with self._lock:
            result: dict[str, int] = {}
            for key in keys:
                counter = self._live_counter_locked(key, now)
                result[key] = counter.value if counter else 0
            return result

    def delete(self, keys: Sequence[str]) -> int:
        now = self._clock()
        removed = 0
        with self._lock:
            for key in keys:
                if self._live_counter_locked(key, now) is not None:
                    del self._counters[key]
                    removed += 1
        return removed

    def set(self, key: str, value: int, ttl_seconds: int) -> None:
        """Seed a counter directly (used to stage traffic history)."""
        now = self._clock()
        with self._lock:
            self._sweep_locked(now)
            counter = _Counter(value=value, expires_at=now + ttl_seconds, seq=next(self._seq))
            self._counters[key] = counter
            self._track_locked(key, counter)

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for c in self._counters.values() if c.expires_at > now)
