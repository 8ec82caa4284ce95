from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import TodoItem

# Shared type for incoming deadline which can be a date, datetime, or ISO8601 string
DeadlineInput = Union[date, datetime, str]

MAX_DESCRIPTION_LENGTH = 500


def _parse_deadline(value: Optional[DeadlineInput]) -> Optional[date]:
    """
    Internal helper to normalize deadline input into a date.
    - If value is a string, accept an ISO date or an ISO datetime (time is dropped).
    - If value is a datetime, keep its date part.
    - If value is a date, return as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        s = value.strip()
        try:
            return date.fromisoformat(s)
        except ValueError:
            try:
                return datetime.fromisoformat(s).date()
            except ValueError as e:
                raise ValueError(
                    "Invalid deadline format. Use ISO8601 date or datetime string (e.g., '2025-01-31')."
                ) from e

    raise ValueError("Invalid type for deadline; expected date, datetime, or ISO8601 string.")


def _clean_description(v: str) -> str:
    s = v.strip()
    if not (1 <= len(s) <= MAX_DESCRIPTION_LENGTH):
        raise ValueError(f"description length must be between 1 and {MAX_DESCRIPTION_LENGTH} characters")
    return s


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item. The identifier is always generated.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "description": "Build a Todo App",
                "tags": ["project", "practice"],
                "deadline": "2025-02-01",
            }
        }
    )

    description: str = Field(..., description="Free-text description", min_length=1)
    tags: Set[str] = Field(default_factory=set, description="Unordered set of tags")
    deadline: date = Field(..., description="Due date. Accepts ISO8601 date or datetime")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..500 length.
        """
        return _clean_description(v)

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v: Optional[DeadlineInput]) -> Optional[date]:
        return _parse_deadline(v)

    def to_item(self, todo_id: int = 0) -> TodoItem:
        return TodoItem(id=todo_id, description=self.description, tags=self.tags, deadline=self.deadline)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for partially updating an existing Todo item.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "description": "Learn Advanced Python",
                "tags": ["programming"],
            }
        }
    )

    description: Optional[str] = Field(default=None, description="Free-text description")
    tags: Optional[Set[str]] = Field(default=None, description="Replacement set of tags")
    deadline: Optional[date] = Field(default=None, description="Due date. Accepts ISO8601 date or datetime")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_description(v)

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v: Optional[DeadlineInput]) -> Optional[date]:
        return _parse_deadline(v)

    def apply_to(self, item: TodoItem) -> TodoItem:
        """Return a copy of ``item`` with the provided fields replaced."""
        changes = {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}
        return item.model_copy(update=changes)
