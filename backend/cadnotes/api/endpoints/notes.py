from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from cadnotes.api.schemas.note import (
    NoteDeleteRequest,
    NoteDeleteResponse,
    NoteMutationResponse,
    NoteRead,
    NoteSave,
)
from cadnotes.dependencies import get_current_user, get_note_service, get_session
from cadnotes.utils.logging import get_logger

if TYPE_CHECKING:
    from cadnotes.core.schemas.auth import AuthUser
    from cadnotes.core.services.note_service import NoteService
    from cadnotes.core.session import SessionData

logger = get_logger(__name__)

router = APIRouter(
    responses={401: {"description": "Not authenticated"}},
)


def _store_failure(action: str, err: Exception) -> HTTPException:
    logger.error(f"Failed to {action}", extra={"error": str(err)})
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}",
    )


@router.get("/notes", response_model=NoteRead)
async def get_note(
    note_id: str | None = Query(default=None, alias="id"),
    current_user: AuthUser = Depends(get_current_user),
    session: SessionData = Depends(get_session),
    service: NoteService = Depends(get_note_service),
):
    """Return the requested note (activating it) or the active note."""
    try:
        note = await service.get_active_or_specific(current_user.id, note_id)
    except Exception as err:
        raise _store_failure("load note", err) from err
    session.set_active_note_id(note.id)
    return NoteRead.model_validate(note)


@router.post("/notes", response_model=NoteMutationResponse)
async def save_note(
    payload: NoteSave,
    current_user: AuthUser = Depends(get_current_user),
    session: SessionData = Depends(get_session),
    service: NoteService = Depends(get_note_service),
):
    try:
        note = await service.save(current_user.id, payload, cached_note_id=session.active_note_id)
    except Exception as err:
        raise _store_failure("save note", err) from err
    if note is None:
        return NoteMutationResponse(message="Nothing to save")
    session.set_active_note_id(note.id)
    return NoteMutationResponse(message="Note saved", note=NoteRead.model_validate(note))


@router.post("/notes/new", response_model=NoteMutationResponse, status_code=status.HTTP_201_CREATED)
async def new_note(
    payload: NoteSave | None = Body(default=None),
    current_user: AuthUser = Depends(get_current_user),
    session: SessionData = Depends(get_session),
    service: NoteService = Depends(get_note_service),
):
    """Create an empty (or prefilled) note and make it the active one."""
    payload = payload or NoteSave()
    try:
        note = await service.create_and_activate(current_user.id, title=payload.title, content=payload.content)
    except Exception as err:
        raise _store_failure("create note", err) from err
    session.set_active_note_id(note.id)
    return NoteMutationResponse(message="New note created", note=NoteRead.model_validate(note))


@router.post("/notes/{note_id}/activate", response_model=NoteMutationResponse)
async def activate_note(
    note_id: str,
    current_user: AuthUser = Depends(get_current_user),
    session: SessionData = Depends(get_session),
    service: NoteService = Depends(get_note_service),
):
    try:
        note = await service.activate(current_user.id, note_id)
    except Exception as err:
        raise _store_failure("activate note", err) from err
    if note is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
    session.set_active_note_id(note.id)
    return NoteMutationResponse(message="Note activated", note=NoteRead.model_validate(note))


@router.delete("/notes", response_model=NoteDeleteResponse)
async def delete_notes(
    payload: NoteDeleteRequest,
    current_user: AuthUser = Depends(get_current_user),
    session: SessionData = Depends(get_session),
    service: NoteService = Depends(get_note_service),
):
    """Delete the selected notes; ids the user does not own are skipped."""
    try:
        deleted, skipped = await service.delete_notes(current_user.id, payload.note_ids)
    except Exception as err:
        raise _store_failure("delete notes", err) from err

    cached = session.active_note_id
    if cached is not None and cached in deleted:
        session.set_active_note_id(None)

    return NoteDeleteResponse(
        message=f"Deleted {len(deleted)} note(s)",
        deleted_count=len(deleted),
        deleted_ids=deleted,
        skipped_ids=skipped,
    )


@router.get("/documents", response_model=list[NoteRead])
async def list_documents(
    limit: int | None = Query(default=None, ge=1, le=500),
    current_user: AuthUser = Depends(get_current_user),
    service: NoteService = Depends(get_note_service),
):
    """All of the user's notes, most recently edited first."""
    try:
        notes = await service.list_notes(current_user.id, limit=limit)
    except Exception as err:
        raise _store_failure("list notes", err) from err
    return [NoteRead.model_validate(n) for n in notes]
