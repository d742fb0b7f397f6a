from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
builds the rate limiter eagerly, so missing store credentials abort startup
instead of failing the first request.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import health_router, todos_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.services import rate_limiter


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    rate_limiter.reset_instance()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.

    Raises:
        ConfigAppError: If rate limiting is enabled and the counter store
            settings are incomplete.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    if settings.rate_limit.enabled:
        rate_limiter.get_rate_limiter()

    app = FastAPI(
        title="Todo API",
        description=(
            "Serves todo items behind a distributed sliding-window rate limiter. "
            "Counters live in Upstash Redis so every instance shares one budget "
            "per client address."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(todos_router)
    app.include_router(health_router)

    # OpenAPI customizations (tags, rate limit responses)
    apply_openapi_customizations(app)

    return app
