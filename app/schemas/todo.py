"""Pydantic schemas for the todo resource."""

from pydantic import BaseModel, ConfigDict, Field


class Todo(BaseModel):
    """A single todo item as stored in the bundled data file."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId", description="Owner of the todo.")
    id: int = Field(..., description="Todo identifier.")
    title: str = Field(..., description="Short description of the task.")
    completed: bool = Field(False, description="Whether the task is done.")


class TodoCollection(BaseModel):
    """Top-level shape of ``app/data/todos.json``."""

    todos: list[Todo] = Field(default_factory=list)


class RateLimitedResponse(BaseModel):
    """Body returned with HTTP 429."""

    message: str = Field("Too many requests", description="Human-readable denial reason.")
