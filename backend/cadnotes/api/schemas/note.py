from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from uuid import UUID  # noqa: TCH003

from pydantic import Field, field_validator

from cadnotes.core.models.base import AppBaseModel


class NoteSave(AppBaseModel):
    """Editor contents sent on every autosave."""

    content: str = Field(default="", max_length=100000, description="Note content")
    title: str | None = Field(default=None, max_length=255, description="Note title")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip()


class NoteRead(AppBaseModel):
    id: UUID
    title: str | None
    content: str
    is_active: bool = Field(alias="isActive")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(alias="updatedAt")


class NoteMutationResponse(AppBaseModel):
    message: str
    note: NoteRead | None = None


class NoteDeleteRequest(AppBaseModel):
    note_ids: list[str] = Field(..., alias="noteIds", min_length=1, description="Ids of notes to delete")


class NoteDeleteResponse(AppBaseModel):
    message: str
    deleted_count: int = Field(alias="deletedCount")
    deleted_ids: list[UUID] = Field(alias="deletedIds")
    skipped_ids: list[str] = Field(default_factory=list, alias="skippedIds")
