"""
Notekeeper Backend — Note SQLAlchemy Model
============================================

What:  ORM model representing the `notes` table (the Note Store).
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design Rationale:
    - UUID primary key: generated in Python (uuid4) so the id is known before
      the INSERT and is never reused after a delete
    - title / content: TEXT NOT NULL with CHECK constraints rejecting empty
      strings, so an invalid note cannot reach durable storage even if the
      service layer is bypassed
    - created_at / updated_at: UTC, timezone aware; updated_at is refreshed
      by every successful update

    Index on created_at DESC:
        Serves the only list query (newest first).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Index, Text, TypeDecorator, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from notekeeper.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    DateTime column that always hands back timezone-aware UTC values.

    SQLite drops tzinfo on storage; rows read back from it are tagged as UTC
    here so comparisons with aware datetimes keep working on every backend.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class Note(Base):
    """
    A single user note.

    Lifecycle:
        1. Created by NoteService.create_note (id, created_at, updated_at assigned)
        2. Rewritten by NoteService.update_note (title, content, updated_at)
        3. Removed by NoteService.delete_note (hard delete, no tombstone)
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utc_now,
    )

    __table_args__ = (
        CheckConstraint("length(title) > 0", name="ck_notes_title_not_empty"),
        CheckConstraint("length(content) > 0", name="ck_notes_content_not_empty"),
        CheckConstraint("updated_at >= created_at", name="ck_notes_updated_after_created"),
        Index("idx_notes_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title='{self.title[:20]}', created_at='{self.created_at}')>"
