from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from cadnotes.core.models.note import Note
from cadnotes.core.repositories.note_repository import NoteRepository
from cadnotes.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from supabase import Client


class SupabaseNoteRepository(NoteRepository):
    """Supabase implementation of the NoteRepository.

    Uses Supabase's PostgREST client for CRUD against the `notes` table. The
    activation transitions go through the `activate_note` and
    `create_active_note` Postgres functions (see `supabase/migrations`), which
    lock the owner's rows and flip the flags inside one transaction.
    """

    TABLE_NAME = "notes"
    WRITABLE_FIELDS = {"title", "content"}

    def __init__(self, client: Client) -> None:
        self._client: Client = client

    async def get_active(self, *, user_id: UUID) -> Note | None:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("is_active", True)
            .order("updated_at", desc=True)
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_note(items[0])

    async def list(self, *, user_id: UUID, limit: int = 100) -> Sequence[Note]:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("user_id", str(user_id))
            .order("updated_at", desc=True)
            .limit(limit)
            .execute()
        )
        items = resp.data or []
        return [self._row_to_note(i) for i in items]

    async def activate(self, note_id: UUID, *, user_id: UUID) -> Note | None:
        resp = await self._run(
            lambda: self._client.rpc(
                "activate_note",
                params={"p_user_id": str(user_id), "p_note_id": str(note_id)},
            ).execute()
        )
        row = self._first(resp.data)
        if not row:
            return None
        return self._row_to_note(row)

    async def create_active(self, *, user_id: UUID, title: str | None, content: str) -> Note:
        resp = await self._run(
            lambda: self._client.rpc(
                "create_active_note",
                params={"p_user_id": str(user_id), "p_title": title, "p_content": content},
            ).execute()
        )
        row = self._first(resp.data)
        if not row:
            raise RuntimeError("create_active_note returned no row")
        return self._row_to_note(row)

    async def update_active(
        self,
        *,
        user_id: UUID,
        changes: dict,
        note_id: UUID | None = None,
    ) -> Note | None:
        # Only title/content are user-editable; ownership and the flag are not
        sanitized: dict[str, Any] = {k: v for k, v in (changes or {}).items() if k in self.WRITABLE_FIELDS}
        sanitized["updated_at"] = datetime.now(UTC).isoformat()

        def _query():
            q = (
                self._client.table(self.TABLE_NAME)
                .update(sanitized)
                .eq("user_id", str(user_id))
                .eq("is_active", True)
            )
            if note_id is not None:
                q = q.eq("id", str(note_id))
            return q.execute()

        resp = await self._run(_query)
        items = resp.data or []
        if not items:
            return None
        if len(items) > 1:
            logger.warning(
                "More than one active note updated",
                extra={"user_id": str(user_id), "count": len(items)},
            )
        return self._row_to_note(items[0])

    async def deactivate_all(self, *, user_id: UUID) -> int:
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .update({"is_active": False})
            .eq("user_id", str(user_id))
            .eq("is_active", True)
            .execute()
        )
        return len(resp.data or [])

    async def owned_ids(self, note_ids: Sequence[UUID], *, user_id: UUID) -> set[UUID]:
        if not note_ids:
            return set()
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .select("id")
            .eq("user_id", str(user_id))
            .in_("id", [str(i) for i in note_ids])
            .execute()
        )
        return {self._row_to_id(r) for r in resp.data or []}

    async def delete_many(self, note_ids: Sequence[UUID], *, user_id: UUID) -> list[UUID]:
        if not note_ids:
            return []
        resp = await self._run(
            lambda: self._client.table(self.TABLE_NAME)
            .delete()
            .eq("user_id", str(user_id))
            .in_("id", [str(i) for i in note_ids])
            .execute()
        )
        return [self._row_to_id(r) for r in resp.data or []]

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        import asyncio
        return await asyncio.to_thread(func)

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}

    @staticmethod
    def _row_to_id(row: dict[str, Any]) -> UUID:
        return UUID(str(row["id"]))

    @staticmethod
    def _row_to_note(row: dict[str, Any]) -> Note:
        known = set(Note.model_fields)
        normalized = {k: v for k, v in row.items() if k in known}
        if normalized.get("content") is None:
            normalized["content"] = ""
        return Note.model_validate(normalized)
