"""
Notekeeper Backend — Application Package Initializer
======================================================

What: Marks the `notekeeper` directory as a Python package.
Why:  Enables module imports like `from notekeeper.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend is a thin layered REST API:

    ┌─────────────────────────────────────┐
    │   Middleware (Admission Gate, IDs)  │  ← rate limit, correlation, access log
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │      Services (Note Service)        │  ← validation, error translation
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │       Database (Note Store)         │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    The counter store used by the Admission Gate (Redis) sits beside the
    Note Store and is shared by every server instance.
"""

__version__ = "1.0.0"
