from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.todos import router as todos_router

__all__ = ["health_router", "todos_router"]
