"""
Notekeeper Backend — Pydantic Request/Response Schemas
========================================================

What:  Pydantic models defining the API contract between frontend and backend.
Why:   Automatic serialization and OpenAPI doc generation.
How:   FastAPI uses these models to parse request bodies and serialize responses.
       Responses use camelCase keys (createdAt, updatedAt) on the wire.

Design Decision:
    Request bodies declare title/content as optional on purpose. Presence and
    emptiness are business rules checked by NoteService, so a missing field
    and an empty field fail the same way (ValidationError) instead of one of
    them turning into FastAPI's generic 422.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteWrite(BaseModel):
    """
    What:  Body of POST /api/notes and PUT /api/notes/{id}.
    Why:   Both operations take the same two fields.
    """
    title: Optional[str] = Field(default=None, description="Note title (required, non-empty)")
    content: Optional[str] = Field(default=None, description="Note body (required, non-empty)")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    What:  Serialized Note: {id, title, content, createdAt, updatedAt}.
    Who:   Returned by every note endpoint that yields a note.
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str = Field(description="Note title")
    content: str = Field(description="Note body")
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="When the note was last changed (UTC ISO 8601)")

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are UTC by convention; make that explicit."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class NoteMutationResponse(BaseModel):
    """
    What:  Confirmation returned by create and update.
    Why:   Carries the confirmation message callers already expect plus the
           resulting note, so clients do not need a follow-up GET.
    """
    message: str = Field(description="Human-readable confirmation")
    note: NoteResponse = Field(description="The note as stored after the write")


class MessageResponse(BaseModel):
    """Confirmation-only body (DELETE)."""
    message: str = Field(description="Human-readable confirmation")


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Note Store connectivity: connected, disconnected")
    counter_store: str = Field(description="Rate-limit counter connectivity: connected, disconnected, disabled")
    uptime_seconds: float = Field(description="Seconds since service started")


NoteList = List[NoteResponse]
