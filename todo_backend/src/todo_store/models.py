from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, Mapping, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNASSIGNED_ID = 0


# PUBLIC_INTERFACE
class TodoItem(BaseModel):
    """
    A Todo item as stored in and returned by the repository.

    Fields:
    - id: Integer identifier; 0 means "unassigned", the repository generates one on insert
    - description: Free-text description
    - tags: Unordered set of string tags
    - deadline: Due date (date only)
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "description": "Learn Python",
                "tags": ["programming", "python"],
                "deadline": "2025-12-31",
            }
        }
    )

    id: int = Field(default=UNASSIGNED_ID, ge=0, description="Unique identifier; 0 until persisted")
    description: str = Field(..., description="Free-text description")
    tags: Set[str] = Field(default_factory=set, description="Unordered set of tags")
    deadline: date = Field(..., description="Due date of the todo item")

    @field_validator("deadline", mode="before")
    @classmethod
    def coerce_deadline(cls, v: Any) -> Any:
        """
        Stored deadlines come back from BSON as datetimes at midnight; keep the date part.
        """
        if isinstance(v, datetime):
            return v.date()
        return v

    @property
    def is_assigned(self) -> bool:
        return self.id != UNASSIGNED_ID

    def to_document(self) -> Dict[str, Any]:
        """Return the BSON-ready document for this item (no store ``_id``)."""
        return {
            "id": self.id,
            "description": self.description,
            "tags": sorted(self.tags),
            # BSON has no pure date type
            "deadline": datetime.combine(self.deadline, time.min),
        }

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "TodoItem":
        """Build an item from a stored document, ignoring the store ``_id``."""
        return cls(
            id=doc["id"],
            description=doc["description"],
            tags=doc.get("tags") or [],
            deadline=doc["deadline"],
        )
