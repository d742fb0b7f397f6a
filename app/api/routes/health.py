from __future__ import annotations

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe.

    Not rate limited and never touches the counter store, so a store outage
    does not make the instance look dead.

    Returns:
        dict: ``status`` plus whether rate limiting is active.
    """

    return {
        "status": "ok",
        "rate_limit_enabled": settings.rate_limit.enabled,
    }
