"""
Notekeeper Backend — Notes Route Handlers
===========================================

What:  The five note endpoints under /api/notes.
How:   Extracts path/body data, delegates to NoteService, sets status codes.
Who:   Called by the single-page client (and notekeeper.client.NotesClient).

    GET    /api/notes        → 200, list of notes (newest first)
    GET    /api/notes/{id}   → 200, note
    POST   /api/notes        → 201, confirmation + note
    PUT    /api/notes/{id}   → 200, confirmation + note
    DELETE /api/notes/{id}   → 200, confirmation

The id path parameter is a plain string on purpose: NoteService decides
whether it is well formed, so a malformed id gets the API's own 400 body
instead of FastAPI's 422.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.database import get_db_session
from notekeeper.schemas.note import (
    ErrorResponse,
    MessageResponse,
    NoteMutationResponse,
    NoteResponse,
    NoteWrite,
)
from notekeeper.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notes"])

_COMMON_ERRORS = {
    429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}
_ID_ERRORS = {
    400: {"description": "Malformed note id", "model": ErrorResponse},
    404: {"description": "Note not found", "model": ErrorResponse},
}


@router.get(
    "/notes",
    response_model=List[NoteResponse],
    responses=_COMMON_ERRORS,
    summary="List all notes, newest first",
)
async def list_notes(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    notes = await note_service.list_notes(db)
    response.headers["X-Total-Count"] = str(len(notes))
    # Notes change on every write; always revalidate
    response.headers["Cache-Control"] = "no-store"
    return notes


@router.get(
    "/notes/{note_id}",
    response_model=NoteResponse,
    responses={**_ID_ERRORS, **_COMMON_ERRORS},
    summary="Get a single note by ID",
)
async def get_note(
    note_id: str,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    response.headers["Cache-Control"] = "no-store"
    return await note_service.get_note(db, note_id)


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteMutationResponse,
    responses={
        400: {"description": "Missing or empty title/content", "model": ErrorResponse},
        **_COMMON_ERRORS,
    },
    summary="Create a note",
)
async def create_note(
    payload: Optional[NoteWrite] = None,
    db: AsyncSession = Depends(get_db_session),
) -> NoteMutationResponse:
    payload = payload or NoteWrite()
    note = await note_service.create_note(db, payload.title, payload.content)
    return NoteMutationResponse(message="Note created successfully", note=note)


@router.put(
    "/notes/{note_id}",
    response_model=NoteMutationResponse,
    responses={**_ID_ERRORS, **_COMMON_ERRORS},
    summary="Replace a note's title and content",
)
async def update_note(
    note_id: str,
    payload: Optional[NoteWrite] = None,
    db: AsyncSession = Depends(get_db_session),
) -> NoteMutationResponse:
    payload = payload or NoteWrite()
    note = await note_service.update_note(db, note_id, payload.title, payload.content)
    return NoteMutationResponse(message="Note updated successfully", note=note)


@router.delete(
    "/notes/{note_id}",
    response_model=MessageResponse,
    responses={**_ID_ERRORS, **_COMMON_ERRORS},
    summary="Delete a note permanently",
)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await note_service.delete_note(db, note_id)
    return MessageResponse(message="Note deleted successfully")
