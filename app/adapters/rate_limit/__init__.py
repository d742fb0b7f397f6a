"""Rate limiting adapters.

This package holds the limiter contract and the sliding-window algorithm
that evaluates it against a shared counter store.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitConfig, Verdict
from app.adapters.rate_limit.sliding_window import SlidingWindowAlgorithm

__all__ = [
    "AbstractRateLimiter",
    "RateLimitConfig",
    "SlidingWindowAlgorithm",
    "Verdict",
]
