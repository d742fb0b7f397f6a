"""Rate limiter façade and process-wide singleton.

The façade is the only entry point the HTTP layer talks to. It coordinates
the local verdict cache with the sliding-window algorithm:

1. Blank identifiers are replaced by the fallback identifier.
2. A cached denial that is still inside its bucket and younger than one
   window answers immediately, without a store call.
3. Otherwise the algorithm counts the request against the shared store and
   the fresh verdict is written back to the cache.

Store failures propagate as StoreUnavailableError. The façade never turns an
outage into "allowed" or "denied".

One instance exists per process. ``get_instance`` builds it under a lock on
first use; concurrent first calls all receive the same object, so every
request shares one cache and one store connection.
"""

from __future__ import annotations

import hashlib
import logging
import math
import threading
import time
from typing import Callable

from app.adapters.counter_store.base import AbstractCounterStore
from app.adapters.counter_store.factory import create_counter_store
from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitConfig, Verdict
from app.adapters.rate_limit.sliding_window import SlidingWindowAlgorithm
from app.core.config import StoreSettings, settings
from app.utils.verdict_cache import VerdictCache

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_IDENTIFIER = "anonymous"


def hash_identifier(identifier: str) -> str:
    """Hash an identifier for logging without exposing client addresses."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


class RateLimiter(AbstractRateLimiter):
    """Sliding-window rate limiter with a local denial cache."""

    def __init__(
        self,
        store: AbstractCounterStore,
        config: RateLimitConfig,
        *,
        cache: VerdictCache | None = None,
        prefix: str = "ratelimit",
        fallback_identifier: str = DEFAULT_FALLBACK_IDENTIFIER,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the façade.

        Args:
            store: Shared counter store.
            config: Immutable limit configuration.
            cache: Verdict cache; a 1024-entry cache is created when omitted.
            prefix: Namespace for counter keys.
            fallback_identifier: Identifier used when the caller passes a blank one.
            clock: Time source function returning UNIX time in seconds.
        """
        if not fallback_identifier:
            raise ValueError("fallback_identifier must be a non-empty string")

        self.config = config
        self.fallback_identifier = fallback_identifier
        self._store = store
        self._clock = clock
        self._cache = cache if cache is not None else VerdictCache(clock=clock)
        self._algorithm = SlidingWindowAlgorithm(store, config, prefix=prefix, clock=clock)

    @property
    def cache(self) -> VerdictCache:
        return self._cache

    def _normalize(self, identifier: str | None) -> str:
        if identifier is None or not identifier.strip():
            return self.fallback_identifier
        return identifier.strip()

    def _cached_denial(self, identifier: str) -> Verdict | None:
        entry = self._cache.get(identifier, max_age_seconds=self.config.window_seconds)
        if entry is None or entry.verdict.allowed:
            return None

        now = self._clock()
        reset_at = entry.verdict.reset_at
        if now >= reset_at:
            return None

        return Verdict(
            allowed=False,
            limit=entry.verdict.limit,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=max(0, math.ceil(reset_at - now)),
        )

    def limit(self, identifier: str | None) -> Verdict:
        """Count one request for ``identifier`` and decide whether it may proceed.

        Args:
            identifier: Caller identity. Blank values use the fallback identifier.

        Returns:
            Verdict for this request.

        Raises:
            StoreUnavailableError: If the counter store cannot be reached.
        """
        key = self._normalize(identifier)
        key_hash = hash_identifier(key)

        cached = self._cached_denial(key)
        if cached is not None:
            logger.info(
                "rate_limit.cache_hit",
                extra={
                    "key_hash": key_hash,
                    "reset_at": cached.reset_at,
                },
            )
            return cached

        verdict = self._algorithm.evaluate(key)
        self._cache.set(key, verdict)

        log_extra = {
            "key_hash": key_hash,
            "limit": verdict.limit,
            "remaining": verdict.remaining,
            "window_s": self.config.window_seconds,
        }
        if verdict.allowed:
            logger.info("rate_limit.allowed", extra=log_extra)
        else:
            logger.warning(
                "rate_limit.denied",
                extra={**log_extra, "retry_after_s": verdict.retry_after_seconds},
            )
        return verdict

    def get_remaining(self, identifier: str | None) -> int:
        """Return the budget left for ``identifier`` without consuming any of it."""
        verdict = self._algorithm.peek(self._normalize(identifier))
        # peek() prices in the hypothetical next request; add it back.
        return min(self.config.max_requests, verdict.remaining + 1) if verdict.allowed else 0

    def reset_used_tokens(self, identifier: str | None) -> None:
        """Forget all recorded traffic for ``identifier``."""
        key = self._normalize(identifier)
        self._store.delete(self._algorithm.keys_for(key))
        self._cache.discard(key)
        logger.info("rate_limit.reset", extra={"key_hash": hash_identifier(key)})

    def close(self) -> None:
        self._store.close()


_instance: RateLimiter | None = None
_instance_lock = threading.Lock()


def get_instance(
    config: RateLimitConfig,
    store_settings: StoreSettings,
    *,
    cache_capacity: int = 1024,
    prefix: str = "ratelimit",
    fallback_identifier: str = DEFAULT_FALLBACK_IDENTIFIER,
) -> RateLimiter:
    """Return the process-wide limiter, building it on first use.

    Construction happens at most once per process: the first caller builds
    the store, cache and façade while holding a lock; every other caller,
    including concurrent first callers, gets the same instance back. Later
    calls ignore their arguments.

    Raises:
        ConfigAppError: If the store settings are incomplete (first call only).
    """

    global _instance

    instance = _instance
    if instance is not None:
        return instance

    with _instance_lock:
        if _instance is None:
            store = create_counter_store(store_settings)
            _instance = RateLimiter(
                store,
                config,
                cache=VerdictCache(capacity=cache_capacity),
                prefix=prefix,
                fallback_identifier=fallback_identifier,
            )
            logger.info(
                "rate_limiter.initialized",
                extra={
                    "backend": store_settings.backend,
                    "max_requests": config.max_requests,
                    "window_s": config.window_seconds,
                    "cache_capacity": cache_capacity,
                },
            )
        return _instance


def get_rate_limiter() -> RateLimiter:
    """Return the process-wide limiter configured from global settings."""

    rl = settings.rate_limit
    return get_instance(
        RateLimitConfig(max_requests=rl.max_requests, window_seconds=rl.window_seconds),
        settings.store,
        cache_capacity=rl.cache_capacity,
        prefix=rl.prefix,
        fallback_identifier=rl.fallback_identifier,
    )


def reset_instance() -> None:
    """Close and drop the process-wide limiter (shutdown and tests)."""

    global _instance

    with _instance_lock:
        if _instance is not None:
            _instance.close()
        _instance = None
