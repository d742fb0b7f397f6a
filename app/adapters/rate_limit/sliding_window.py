"""Sliding-window rate limiting over shared fixed-window counters.

Each identifier owns one counter per fixed bucket of ``window_seconds``. A
request is admitted when the weighted estimate

    previous_count * (1 - elapsed_fraction) + current_count

does not exceed ``max_requests``. This approximates a true moving window
without storing per-request timestamps: storage is two integers per
identifier and each decision costs one atomic increment plus one read.

Counters are never decremented. A denied request stays counted in its
bucket, so it also weighs on the next bucket's estimate.
"""

from __future__ import annotations

import math
import time
from typing import Callable

from app.adapters.counter_store.base import AbstractCounterStore
from app.adapters.rate_limit.base import RateLimitConfig, Verdict


def compute_bucket(now: float, window_seconds: int) -> int:
    """Return the index of the fixed window containing ``now``."""
    return math.floor(now / window_seconds)


def elapsed_fraction(now: float, window_seconds: int) -> float:
    """Return how far into its bucket ``now`` lies, in [0, 1)."""
    return (now % window_seconds) / window_seconds


def weighted_estimate(previous_count: int, current_count: int, fraction: float) -> float:
    """Blend the previous and current bucket counts."""
    return previous_count * (1 - fraction) + current_count


class SlidingWindowAlgorithm:
    """Evaluate the sliding-window formula against a counter store.

    Attributes:
        config: Immutable limit configuration.
        prefix: Namespace for counter keys.
    """

    def __init__(
        self,
        store: AbstractCounterStore,
        config: RateLimitConfig,
        *,
        prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self.config = config
        self.prefix = prefix
        self._clock = clock

    @property
    def counter_ttl_seconds(self) -> int:
        # A bucket is still read as "previous" for one full window after it closes.
        return 2 * self.config.window_seconds

    def key_for(self, identifier: str, bucket: int) -> str:
        return f"{self.prefix}:{identifier}:{bucket}"

    def evaluate(self, identifier: str) -> Verdict:
        """Count one request for ``identifier`` and return the decision.

        Raises:
            StoreUnavailableError: If the counter store cannot be reached.
        """
        now = self._clock()
        window = self.config.window_seconds
        current_bucket = compute_bucket(now, window)

        current_key = self.key_for(identifier, current_bucket)
        previous_key = self.key_for(identifier, current_bucket - 1)

        current_count = self._store.increment_and_get(current_key, self.counter_ttl_seconds)
        previous_count = self._store.get_many([previous_key]).get(previous_key, 0)

        return self._decide(now, current_bucket, previous_count, current_count)

    def peek(self, identifier: str) -> Verdict:
        """Compute the decision the next request would get, without counting it."""
        now = self._clock()
        window = self.config.window_seconds
        current_bucket = compute_bucket(now, window)

        current_key = self.key_for(identifier, current_bucket)
        previous_key = self.key_for(identifier, current_bucket - 1)
        counts = self._store.get_many([previous_key, current_key])

        return self._decide(
            now,
            current_bucket,
            counts.get(previous_key, 0),
            counts.get(current_key, 0) + 1,
        )

    def keys_for(self, identifier: str) -> list[str]:
        """Return the counter keys that currently weigh on ``identifier``."""
        current_bucket = compute_bucket(self._clock(), self.config.window_seconds)
        return [
            self.key_for(identifier, current_bucket - 1),
            self.key_for(identifier, current_bucket),
        ]

    def _decide(
        self,
        now: float,
        current_bucket: int,
        previous_count: int,
        current_count: int,
    ) -> Verdict:
        window = self.config.window_seconds
        limit = self.config.max_requests

        estimate = weighted_estimate(
            previous_count,
            current_count,
            elapsed_fraction(now, window),
        )
        allowed = estimate <= limit
        remaining = min(limit, max(0, math.floor(limit - estimate)))
        reset_at = (current_bucket + 1) * window

        return Verdict(
            allowed=allowed,
            limit=limit,
            remaining=remaining,
            reset_at=reset_at,
            retry_after_seconds=None if allowed else max(0, math.ceil(reset_at - now)),
        )
