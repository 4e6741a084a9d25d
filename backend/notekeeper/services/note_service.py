"""
Notekeeper Backend — Note Service
===================================

What:  The five note operations: list, get, create, update, delete.
Why:   Keeps validation and store-error translation out of the HTTP layer.
How:   Every operation reads or writes the Note Store directly through the
       request's AsyncSession; nothing is cached between requests.
Who:   Called by route handlers in routes/notes.py.

Error translation:
    missing/empty field      → ValidationError
    malformed id             → InvalidIdentifierError
    unknown id               → NotFoundError
    driver error or timeout  → StoreError (logged here, generic to the client)

Every store call is bounded by settings.store_timeout_seconds. There is no
retry inside the service; a failed call fails the request.

Concurrency:
    NoteService is stateless. Overlapping requests each hold their own
    session. Concurrent updates to the same note are last-write-wins.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, List, Optional, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.config import settings
from notekeeper.exceptions import (
    InvalidIdentifierError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from notekeeper.models.note import Note, utc_now
from notekeeper.schemas.note import NoteResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_note_id(note_id: str) -> UUID:
    """Converts a path id into a UUID or raises InvalidIdentifierError."""
    try:
        return UUID(str(note_id))
    except (ValueError, TypeError, AttributeError):
        raise InvalidIdentifierError(identifier=str(note_id))


def validate_fields(title: Optional[str], content: Optional[str]) -> None:
    """
    Rejects missing, empty, or whitespace-only title/content.

    Title is checked first so the error names the first bad field.
    """
    for field, value in (("title", title), ("content", content)):
        if value is None or not isinstance(value, str) or not value.strip():
            raise ValidationError(
                message=f"{field.capitalize()} is required and cannot be empty",
                field=field,
            )


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - list_notes():  all notes, newest first
        - get_note():    single note with not-found handling
        - create_note(): validate and persist
        - update_note(): validate, overwrite, refresh updated_at
        - delete_note(): hard delete
    """

    def __init__(self, timeout: Optional[float] = None):
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout if self._timeout is not None else settings.store_timeout_seconds

    async def _store_call(self, awaitable: Awaitable[T], operation: str, **context) -> T:
        """
        Awaits a store call under the configured timeout.

        Driver errors and timeouts become StoreError with the operation name
        and the caller's context attached for the server log.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(
                "Store call timed out after %.1fs during %s | Context: %s",
                self.timeout, operation, context,
            )
            raise StoreError(
                context={"operation": operation, "error_type": "TimeoutError", **context},
            )
        except SQLAlchemyError as e:
            logger.error(
                "Store error during %s: %s | Context: %s",
                operation, str(e), context,
                exc_info=True,
            )
            raise StoreError(
                context={"operation": operation, "error_type": type(e).__name__, **context},
            )

    async def _load(self, db: AsyncSession, note_id: str, operation: str) -> Note:
        uid = parse_note_id(note_id)
        result = await self._store_call(
            db.execute(select(Note).where(Note.id == uid)),
            operation,
            note_id=str(uid),
        )
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="note", resource_id=str(uid))
        return note

    async def list_notes(self, db: AsyncSession) -> List[NoteResponse]:
        """
        Returns every note ordered by created_at descending.

        An empty store yields an empty list, never an error.
        """
        result = await self._store_call(
            db.execute(select(Note).order_by(desc(Note.created_at))),
            "list_notes",
        )
        return [NoteResponse.model_validate(note) for note in result.scalars().all()]

    async def get_note(self, db: AsyncSession, note_id: str) -> NoteResponse:
        """
        Retrieve a single note by ID.

        Raises:
            InvalidIdentifierError: note_id is not a UUID (→ 400)
            NotFoundError: no note with that id (→ 404)
            StoreError: query failed or timed out (→ 500)
        """
        note = await self._load(db, note_id, "get_note")
        return NoteResponse.model_validate(note)

    async def create_note(
        self,
        db: AsyncSession,
        title: Optional[str],
        content: Optional[str],
    ) -> NoteResponse:
        """
        Validate and persist a new note.

        id and both timestamps are assigned here; created_at == updated_at
        for a freshly created note. Validation happens before anything is
        added to the session, so a rejected note is never written.
        """
        validate_fields(title, content)

        now = utc_now()
        note = Note(id=uuid4(), title=title, content=content, created_at=now, updated_at=now)
        db.add(note)
        await self._store_call(db.commit(), "create_note")

        logger.info("Note created: %s", note.id)
        return NoteResponse.model_validate(note)

    async def update_note(
        self,
        db: AsyncSession,
        note_id: str,
        title: Optional[str],
        content: Optional[str],
    ) -> NoteResponse:
        """
        Overwrite title and content of an existing note.

        id and created_at are untouched; updated_at moves forward and is
        kept strictly after created_at even when the clock has not advanced.
        """
        uid = parse_note_id(note_id)
        validate_fields(title, content)
        note = await self._load(db, str(uid), "update_note")

        now = utc_now()
        if now <= note.created_at:
            now = note.created_at + timedelta(microseconds=1)

        note.title = title
        note.content = content
        note.updated_at = now
        await self._store_call(db.commit(), "update_note", note_id=str(uid))

        logger.info("Note updated: %s", note.id)
        return NoteResponse.model_validate(note)

    async def delete_note(self, db: AsyncSession, note_id: str) -> None:
        """Permanently remove a note. No tombstone is kept."""
        note = await self._load(db, note_id, "delete_note")
        await self._store_call(db.delete(note), "delete_note", note_id=str(note.id))
        await self._store_call(db.commit(), "delete_note", note_id=str(note.id))
        logger.info("Note deleted: %s", note.id)


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
