"""
Notekeeper Backend — Note Service Unit Tests
==============================================

What:  Tests for NoteService (list, get, create, update, delete).
How:   Mock sessions for error translation; a real SQLite store for the
       lifecycle properties (ordering, timestamps, hard delete).

What we test:
    ✅ create → get round trip, created_at == updated_at
    ✅ empty/missing fields rejected and never persisted
    ✅ list ordering newest first
    ✅ update keeps created_at, moves updated_at forward
    ✅ delete then get → NotFoundError
    ✅ unknown id → NotFoundError, malformed id → InvalidIdentifierError
    ✅ driver errors and timeouts → StoreError
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from notekeeper.exceptions import (
    InvalidIdentifierError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from notekeeper.models.note import Note
from notekeeper.services.note_service import NoteService, parse_note_id, validate_fields


async def _count(session) -> int:
    result = await session.execute(select(func.count(Note.id)))
    return result.scalar()


class TestHelpers:
    """Identifier parsing and field validation."""

    def test_parse_note_id_accepts_uuid_string(self):
        uid = uuid4()
        assert parse_note_id(str(uid)) == uid

    @pytest.mark.parametrize("bad", ["", "123", "not-a-uuid", "64b7f0c2e1d3a4b5c6d7e8f9"])
    def test_parse_note_id_rejects_malformed(self, bad):
        with pytest.raises(InvalidIdentifierError):
            parse_note_id(bad)

    def test_invalid_identifier_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            parse_note_id("nope")

    @pytest.mark.parametrize(
        "title, content, field",
        [
            (None, "body", "title"),
            ("", "body", "title"),
            ("   ", "body", "title"),
            ("Title", None, "content"),
            ("Title", "", "content"),
            (None, None, "title"),
        ],
    )
    def test_validate_fields_names_first_bad_field(self, title, content, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_fields(title, content)
        assert exc_info.value.field == field


class TestNoteServiceLifecycle:
    """Behavior against a real (SQLite) Note Store."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_create_then_get(self, db_session):
        created = await self.service.create_note(db_session, "A", "B")
        fetched = await self.service.get_note(db_session, str(created.id))

        assert fetched.id == created.id
        assert fetched.title == "A"
        assert fetched.content == "B"
        assert fetched.created_at == fetched.updated_at

    @pytest.mark.asyncio
    async def test_created_ids_are_unique(self, db_session):
        ids = {(await self.service.create_note(db_session, f"t{i}", "c")).id for i in range(5)}
        assert len(ids) == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title, content", [("", "B"), ("A", ""), (None, "B"), ("A", None)])
    async def test_create_invalid_persists_nothing(self, db_session, title, content):
        with pytest.raises(ValidationError):
            await self.service.create_note(db_session, title, content)
        assert await _count(db_session) == 0

    @pytest.mark.asyncio
    async def test_list_empty_store(self, db_session):
        assert await self.service.list_notes(db_session) == []

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db_session):
        created = []
        for i in range(4):
            created.append(await self.service.create_note(db_session, f"Note {i}", "body"))
            await asyncio.sleep(0.002)

        listed = await self.service.list_notes(db_session)

        assert [n.id for n in listed] == [n.id for n in reversed(created)]

    @pytest.mark.asyncio
    async def test_update_rewrites_fields_and_refreshes_updated_at(self, db_session):
        created = await self.service.create_note(db_session, "A", "B")
        await asyncio.sleep(0.002)

        updated = await self.service.update_note(db_session, str(created.id), "A2", "B2")

        assert updated.id == created.id
        assert updated.title == "A2"
        assert updated.content == "B2"
        assert updated.created_at == created.created_at
        assert updated.updated_at > updated.created_at

    @pytest.mark.asyncio
    async def test_update_keeps_updated_at_after_created_at_when_clock_stalls(self, mock_db_session):
        future = datetime.now(timezone.utc) + timedelta(hours=1)
        note = Note(id=uuid4(), title="A", content="B", created_at=future, updated_at=future)
        result = MagicMock()
        result.scalar_one_or_none.return_value = note
        mock_db_session.execute.return_value = result

        updated = await self.service.update_note(mock_db_session, str(note.id), "A2", "B2")

        assert updated.updated_at > updated.created_at

    @pytest.mark.asyncio
    async def test_update_with_empty_field_leaves_note_untouched(self, db_session):
        created = await self.service.create_note(db_session, "A", "B")

        with pytest.raises(ValidationError):
            await self.service.update_note(db_session, str(created.id), "", "B2")

        fetched = await self.service.get_note(db_session, str(created.id))
        assert (fetched.title, fetched.content) == ("A", "B")

    @pytest.mark.asyncio
    async def test_delete_then_get_not_found(self, db_session):
        created = await self.service.create_note(db_session, "A", "B")

        await self.service.delete_note(db_session, str(created.id))

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, str(created.id))
        assert await _count(db_session) == 0

    @pytest.mark.asyncio
    async def test_unknown_id_not_found_for_every_operation(self, db_session):
        missing = str(uuid4())
        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, missing)
        with pytest.raises(NotFoundError):
            await self.service.update_note(db_session, missing, "A", "B")
        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, missing)

    @pytest.mark.asyncio
    async def test_malformed_id_for_every_operation(self, db_session):
        with pytest.raises(InvalidIdentifierError):
            await self.service.get_note(db_session, "abc")
        with pytest.raises(InvalidIdentifierError):
            await self.service.update_note(db_session, "abc", "A", "B")
        with pytest.raises(InvalidIdentifierError):
            await self.service.delete_note(db_session, "abc")


class TestNoteServiceStoreFaults:
    """Driver failures become StoreError; nothing is retried."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_list_driver_error(self, mock_db_session):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection lost"))
        )

        with pytest.raises(StoreError) as exc_info:
            await self.service.list_notes(mock_db_session)

        assert exc_info.value.context["operation"] == "list_notes"
        mock_db_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_commit_error(self, mock_db_session):
        mock_db_session.commit = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("disk full"))
        )

        with pytest.raises(StoreError):
            await self.service.create_note(mock_db_session, "A", "B")
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_store_timeout(self, mock_db_session):
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        mock_db_session.execute = AsyncMock(side_effect=hang)
        service = NoteService(timeout=0.01)

        with pytest.raises(StoreError) as exc_info:
            await service.get_note(mock_db_session, str(uuid4()))
        assert exc_info.value.context["error_type"] == "TimeoutError"

    @pytest.mark.asyncio
    async def test_not_found_is_not_wrapped(self, mock_db_session):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = result

        with pytest.raises(NotFoundError):
            await self.service.get_note(mock_db_session, str(uuid4()))
