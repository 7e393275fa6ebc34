from __future__ import annotations

from typing import TYPE_CHECKING

from cadnotes.config import settings
from cadnotes.utils.logging import get_logger
from cadnotes.utils.validation import parse_note_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from cadnotes.api.schemas.note import NoteSave
    from cadnotes.core.models.note import Note
    from cadnotes.core.repositories.note_repository import NoteRepository

logger = get_logger(__name__)


class NoteService:
    """Active-note selection and note CRUD for one user at a time.

    Every user has at most one active note, the one the editor shows. The
    transitions between active notes are delegated to the repository's
    atomic `activate` and `create_active`.
    """

    def __init__(self, repo: NoteRepository, default_title: str | None = None) -> None:
        self._repo = repo
        self._default_title = default_title or settings.default_note_title

    async def activate(self, user_id: UUID, note_id: str | UUID) -> Note | None:
        """Make an owned note the active one; None if missing or not owned."""
        note_uuid = parse_note_id(note_id)
        if note_uuid is None:
            return None
        note = await self._repo.activate(note_uuid, user_id=user_id)
        if note is None:
            logger.info(
                "Activation refused, note not found for user",
                extra={"user_id": str(user_id), "note_id": str(note_uuid)},
            )
        return note

    async def create_and_activate(
        self,
        user_id: UUID,
        *,
        title: str | None = None,
        content: str = "",
    ) -> Note:
        note = await self._repo.create_active(
            user_id=user_id,
            title=title or self._default_title,
            content=content,
        )
        logger.info("Created active note", extra={"user_id": str(user_id), "note_id": str(note.id)})
        return note

    async def deactivate_all(self, user_id: UUID) -> int:
        return await self._repo.deactivate_all(user_id=user_id)

    async def get_active_or_specific(self, user_id: UUID, note_id: str | UUID | None = None) -> Note:
        """Resolve the note to show in the editor.

        An explicitly requested note is activated when the user owns it.
        Otherwise the current active note is returned, and a fresh empty note
        is created when the user has none.
        """
        if note_id is not None:
            note = await self.activate(user_id, note_id)
            if note is not None:
                return note

        active = await self._repo.get_active(user_id=user_id)
        if active is not None:
            return active
        return await self.create_and_activate(user_id)

    async def save(
        self,
        user_id: UUID,
        payload: NoteSave,
        cached_note_id: UUID | None = None,
    ) -> Note | None:
        """Write the editor contents into the active note.

        Tries the session's cached active note first, then whichever note the
        store marks active, and finally creates a new active note. An empty
        payload never creates a note; it returns None instead. A title sent
        blank clears the stored title.
        """
        changes = payload.model_dump(exclude_unset=True)
        if "title" in changes and not changes["title"]:
            changes["title"] = None

        if cached_note_id is not None:
            note = await self._repo.update_active(user_id=user_id, changes=changes, note_id=cached_note_id)
            if note is not None:
                return note
            logger.debug("Cached active note is stale", extra={"note_id": str(cached_note_id)})

        note = await self._repo.update_active(user_id=user_id, changes=changes)
        if note is not None:
            return note

        if not (payload.title or "").strip() and not payload.content:
            logger.debug("Skipping empty save with no active note", extra={"user_id": str(user_id)})
            return None
        return await self.create_and_activate(
            user_id,
            title=payload.title,
            content=payload.content or "",
        )

    async def delete_notes(
        self,
        user_id: UUID,
        note_ids: Iterable[str | UUID],
    ) -> tuple[list[UUID], list[str]]:
        """Delete the requested notes the user owns.

        Ids that are malformed or belong to somebody else are left alone and
        returned as skipped. If the active note goes, the active flag is
        cleared first so no deleted row is left as the active pointer.
        """
        requested: list[UUID] = []
        skipped: list[str] = []
        for raw in note_ids:
            parsed = parse_note_id(raw)
            if parsed is None:
                skipped.append(str(raw))
            elif parsed not in requested:
                requested.append(parsed)

        owned = await self._repo.owned_ids(requested, user_id=user_id)
        skipped.extend(str(i) for i in requested if i not in owned)
        if skipped:
            logger.warning(
                "Ignoring note ids not owned by user",
                extra={"user_id": str(user_id), "skipped": skipped},
            )

        to_delete = [i for i in requested if i in owned]
        if not to_delete:
            return [], skipped

        active = await self._repo.get_active(user_id=user_id)
        if active is not None and active.id in owned:
            await self.deactivate_all(user_id)

        deleted = await self._repo.delete_many(to_delete, user_id=user_id)
        logger.info("Deleted notes", extra={"user_id": str(user_id), "count": len(deleted)})
        return deleted, skipped

    async def list_notes(self, user_id: UUID, limit: int | None = None) -> Sequence[Note]:
        """List the user's notes, most recently updated first."""
        return await self._repo.list(user_id=user_id, limit=limit or settings.list_notes_limit)
