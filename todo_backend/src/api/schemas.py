from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import TodoStatus

TITLE_MAX_LENGTH = 100
# Largest value SQLite can bind as an INTEGER
SQLITE_MAX_INT = 2**63 - 1


def _strip_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    s = value.strip()
    if not (1 <= len(s) <= TITLE_MAX_LENGTH):
        raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
    return s


# PUBLIC_INTERFACE
class ListParams(BaseModel):
    """
    Query parameters shared by the list and search endpoints.
    Values arrive as strings and are coerced to integers.
    """

    q: str = Field(default="", description="Substring searched in titles")
    skip: int = Field(default=0, ge=0, le=SQLITE_MAX_INT, description="Number of todos to skip")
    limit: int = Field(default=10, ge=1, le=100, description="Maximum number of todos to return")


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "description": "Two litres, semi-skimmed",
                "status": "pending",
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TodoStatus = Field(default="pending", description="Either 'pending' or 'completed'")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: object) -> object:
        """
        Strip whitespace and enforce 1..100 length.
        """
        return _strip_title(v) if isinstance(v, str) else v


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "completed",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item", min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: Optional[TodoStatus] = Field(default=None, description="Either 'pending' or 'completed'")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: object) -> object:
        """
        If title is provided, strip whitespace and enforce 1..100 length.
        """
        return _strip_title(v) if isinstance(v, str) else v

    def changes(self) -> dict:
        """
        Fields to write over the stored todo. A field sent as null keeps its stored value.
        """
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "description": None,
                "status": "pending",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TodoStatus = Field(..., description="Either 'pending' or 'completed'")


class DeleteConfirmation(BaseModel):
    """Body returned after a todo is deleted."""

    detail: str = Field(..., description="Confirmation message")
