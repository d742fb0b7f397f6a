"""Todo lookup backed by the bundled JSON data file."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from app.schemas.todo import Todo, TodoCollection

logger = logging.getLogger(__name__)

DATA_FILE = Path(__file__).resolve().parents[1] / "data" / "todos.json"


@lru_cache(maxsize=None)
def load_todos(path: Path = DATA_FILE) -> tuple[Todo, ...]:
    """Load and validate the todo list once per process.

    Args:
        path: JSON file with a top-level ``todos`` array.

    Returns:
        Tuple of validated todos, in file order.
    """
    raw = json.loads(path.read_text(encoding="utf-8"))
    collection = TodoCollection.model_validate(raw)
    logger.info("todos.loaded", extra={"count": len(collection.todos)})
    return tuple(collection.todos)


def get_todo(index: int, todos: tuple[Todo, ...] | None = None) -> dict[str, Any]:
    """Return the todo at ``index`` as JSON-ready data.

    Unknown positions, negative ones included, yield an empty object rather
    than an error.
    """
    items = todos if todos is not None else load_todos()
    if 0 <= index < len(items):
        return items[index].model_dump(by_alias=True)
    return {}
