"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so the HTTP layer never needs to know how counters are stored or cached.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Immutable limiter configuration.

    Attributes:
        max_requests: Max requests per sliding window.
        window_seconds: Window length in seconds.

    Raises:
        ValueError: If either value is below 1.
    """

    max_requests: int
    window_seconds: int

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")


@dataclass(frozen=True)
class Verdict:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining budget, always within [0, limit].
        reset_at: UNIX epoch seconds when the current bucket ends.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def limit(self, identifier: str) -> Verdict:
        """Count one request for ``identifier`` and decide whether it may proceed.

        Args:
            identifier: Caller identity (e.g., client IP address).

        Returns:
            Verdict describing whether it was allowed.

        Raises:
            StoreUnavailableError: If the shared counter store cannot be reached.
        """
        raise NotImplementedError
