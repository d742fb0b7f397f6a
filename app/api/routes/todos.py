from typing import Any

from fastapi import APIRouter, Depends

from app.core.rate_limit import enforce_rate_limit
from app.schemas.todo import RateLimitedResponse
from app.services.todo_service import get_todo

router = APIRouter(tags=["Todos"])


@router.get(
    "/todos/{todo_id}",
    dependencies=[Depends(enforce_rate_limit)],
    responses={429: {"model": RateLimitedResponse, "description": "Rate limit exceeded"}},
)
def read_todo(todo_id: int) -> dict[str, Any]:
    """Return one todo by position, subject to the per-client rate limit.

    Args:
        todo_id: Zero-based position in the todo list.

    Returns:
        dict: The todo, or an empty object when the position is unknown.
    """
    return get_todo(todo_id)
