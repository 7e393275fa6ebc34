from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from cadnotes.core.models.note import Note


class NoteRepository(ABC):
    """Abstract repository interface for notes.

    Every method is scoped by owner id; implementations must never read or
    mutate rows belonging to another user. The two activation methods must
    be atomic with respect to the one-active-note-per-user invariant.
    """

    @abstractmethod
    async def get_active(self, *, user_id: UUID) -> Note | None:  # pragma: no cover - interface only
        """Return the user's active note, if any."""

    @abstractmethod
    async def list(self, *, user_id: UUID, limit: int = 100) -> Sequence[Note]:  # pragma: no cover
        """Return the user's notes, most recently updated first."""

    @abstractmethod
    async def activate(self, note_id: UUID, *, user_id: UUID) -> Note | None:  # pragma: no cover
        """Make the note the only active one for its owner.

        Returns None, leaving the current active note untouched, when the
        note does not exist or belongs to someone else.
        """

    @abstractmethod
    async def create_active(self, *, user_id: UUID, title: str | None, content: str) -> Note:  # pragma: no cover
        """Deactivate the user's active note and insert a new active one."""

    @abstractmethod
    async def update_active(
        self,
        *,
        user_id: UUID,
        changes: dict,
        note_id: UUID | None = None,
    ) -> Note | None:  # pragma: no cover
        """Update the user's active note and return it.

        With `note_id` the update only applies if that note is still the
        active one. Returns None if nothing matched.
        """

    @abstractmethod
    async def deactivate_all(self, *, user_id: UUID) -> int:  # pragma: no cover
        """Clear the active flag on all of the user's notes; return rows changed."""

    @abstractmethod
    async def owned_ids(self, note_ids: Sequence[UUID], *, user_id: UUID) -> set[UUID]:  # pragma: no cover
        """Return the subset of ids that exist and belong to the user."""

    @abstractmethod
    async def delete_many(self, note_ids: Sequence[UUID], *, user_id: UUID) -> list[UUID]:  # pragma: no cover
        """Delete the user's notes with the given ids; return the ids removed."""
