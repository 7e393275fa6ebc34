from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import Field

from .base import TimestampedModel


class Note(TimestampedModel):
    """A user's note as stored in the `notes` table.

    At most one note per user carries `is_active=True`; the editor always
    works on that note.
    """

    id: UUID = Field(default_factory=uuid4, description="Unique note identifier")
    user_id: UUID = Field(..., description="Owner of the note")
    title: str | None = Field(default=None, max_length=255, description="Note title")
    content: str = Field(default="", description="Note body, may be empty")
    is_active: bool = Field(default=False, description="Whether this is the note being edited")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": str(uuid4()),
                    "user_id": str(uuid4()),
                    "title": "Gearbox housing",
                    "content": "Check mate offsets on the bearing seat.",
                    "is_active": True,
                }
            ]
        }
    }
