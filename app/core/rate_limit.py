"""Rate limiting dependency for FastAPI routes.

This module wires the limiter façade into the HTTP layer.

- The identifier is the client address as reported by Cloudflare
  (``CF-Connecting-IP``), else the socket peer, else the fallback identifier.
- Allowed requests get X-RateLimit-* headers (when enabled).
- Denied requests raise RateLimitExceededError (HTTP 429).
- Store outages raise StoreUnavailableError (HTTP 503), never 200 or 429.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Header, Request, Response

from app.adapters.rate_limit.base import Verdict
from app.core.config import settings
from app.core.errors import RateLimitExceededError
from app.services import rate_limiter

CLIENT_IP_HEADER = "CF-Connecting-IP"


def resolve_identifier(request: Request, client_ip: str | None) -> str:
    """Build the limiter identifier for the current request.

    Args:
        request: FastAPI request.
        client_ip: Value of the CF-Connecting-IP header, if any.

    Returns:
        str: Non-empty identifier.
    """

    if client_ip and client_ip.strip():
        return client_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return settings.rate_limit.fallback_identifier


def build_rate_limit_headers(verdict: Verdict) -> dict[str, str]:
    """Render a verdict as X-RateLimit-* (and Retry-After) headers."""

    headers = {
        "X-RateLimit-Limit": str(verdict.limit),
        "X-RateLimit-Remaining": str(verdict.remaining),
        "X-RateLimit-Reset": str(verdict.reset_at),
    }
    if verdict.retry_after_seconds is not None:
        headers["Retry-After"] = str(verdict.retry_after_seconds)
    return headers


def enforce_rate_limit(
    request: Request,
    response: Response,
    client_ip: Annotated[str | None, Header(alias=CLIENT_IP_HEADER)] = None,
) -> None:
    """FastAPI dependency enforcing the sliding-window limit.

    Declared as a plain function so FastAPI runs it in the threadpool; the
    store client is synchronous and bounded by its own timeout.

    Raises:
        RateLimitExceededError: When the caller exceeded its budget.
        StoreUnavailableError: When the counter store cannot be reached.
    """

    if not settings.rate_limit.enabled:
        return

    limiter = rate_limiter.get_rate_limiter()
    verdict = limiter.limit(resolve_identifier(request, client_ip))

    if verdict.allowed:
        if settings.rate_limit.include_headers:
            response.headers.update(build_rate_limit_headers(verdict))
        return

    raise RateLimitExceededError(
        code="rate_limit_exceeded",
        message="Too many requests",
        verdict=verdict,
    )
