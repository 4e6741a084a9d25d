"""
Notekeeper Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for every failure the API can report.
Why:   Custom exceptions enable targeted error handling with the right HTTP
       status and a user-safe message, without try/except in every route.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses.
Who:   Raised by the Note Service and the Admission Gate; caught by handlers.

Exception Hierarchy:
    NotekeeperError (base)
    ├── ValidationError            → 400 Bad Request (500 in legacy mode)
    │   └── InvalidIdentifierError → 400 Bad Request
    ├── NotFoundError              → 404 Not Found
    ├── RateLimitExceededError     → 429 Too Many Requests
    ├── StoreError                 → 500 Internal Server Error
    └── CounterStoreError          → 500 Internal Server Error

Expected failures (validation, identifier, not-found, rate limit) are part of
the API contract. Store failures are not: they are logged with full context
and the client only ever sees a generic message.
"""

from typing import Any, Dict, Optional


class NotekeeperError(Exception):
    """
    Base exception for all Notekeeper application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where noted)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotekeeperError):
    """
    Raised when client input fails validation.

    When:    Missing or empty title/content, malformed request body.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Title is required",
            "details": {"field": "title"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidIdentifierError(ValidationError):
    """
    Raised when a note id is not a well-formed identifier.

    A malformed id can never match a record, so it is reported as a client
    error rather than a 404. Always answers 400, even in legacy mode.
    """

    def __init__(
        self,
        identifier: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["identifier"] = identifier
        super().__init__(
            message=f"'{identifier}' is not a valid note id",
            field="id",
            context=ctx,
        )
        self.identifier = identifier


class NotFoundError(NotekeeperError):
    """
    Raised when a well-formed id matches no record.

    HTTP:    404 Not Found

    SQLAlchemy returns None for missing records (not an exception); the
    service layer converts None into this exception.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreError(NotekeeperError):
    """
    Raised when the Note Store fails unexpectedly.

    When:    Connection lost mid-query, timeout, constraint violation, deadlock.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. Driver errors
        (SQL text, constraint names) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CounterStoreError(NotekeeperError):
    """
    Raised when the rate-limit counter store (Redis) cannot be reached.

    HTTP:    500 Internal Server Error

    The gate does not admit requests it could not count.
    """

    def __init__(
        self,
        message: str = "Request admission is temporarily unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(NotekeeperError):
    """
    Raised when the request budget for the current window is spent.

    HTTP:    429 Too Many Requests

    retry_after is a hint (seconds until the oldest counted request leaves
    the window); clients must not rely on it.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "Too many requests. Please slow down and try again shortly."
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
