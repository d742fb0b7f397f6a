"""Unit tests for the todo lookup service."""

import json

from app.schemas.todo import Todo
from app.services.todo_service import get_todo, load_todos


def test_bundled_data_loads() -> None:
    todos = load_todos()

    assert len(todos) == 10
    assert todos[0].id == 1


def test_load_validates_custom_file(tmp_path) -> None:
    path = tmp_path / "todos.json"
    path.write_text(
        json.dumps({"todos": [{"userId": 7, "id": 42, "title": "ship it", "completed": True}]}),
        encoding="utf-8",
    )

    todos = load_todos(path)

    assert todos == (Todo(userId=7, id=42, title="ship it", completed=True),)


def test_get_todo_bounds() -> None:
    todos = (Todo(userId=1, id=1, title="only"),)

    assert get_todo(0, todos) == {"userId": 1, "id": 1, "title": "only", "completed": False}
    assert get_todo(1, todos) == {}
    assert get_todo(-1, todos) == {}
