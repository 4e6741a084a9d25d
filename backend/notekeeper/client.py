"""
Notekeeper — HTTP Client
==========================

What:  Async client for the /api/notes endpoints.
Why:   Gives scripts and the test suite the same contract the single-page
       client relies on, including its three failure states.
How:   httpx.AsyncClient; responses are parsed into immutable NoteResponse
       models, failures into one of three exception types:

    ClientRateLimited    → "slow down" state (HTTP 429)
    ClientNotFound       → empty / not-found state (HTTP 404)
    ClientRequestFailed  → generic error notification (anything else)

Editing a note never mutates the record in place: callers build a new one
with note.model_copy(update={...}) and send it with save_note().
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from notekeeper.schemas.note import NoteResponse

logger = logging.getLogger(__name__)


class ClientError(Exception):
    """Base class for failures reported by NotesClient."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body or {}


class ClientRateLimited(ClientError):
    """The server's admission gate rejected the request."""

    @property
    def retry_after(self) -> Optional[int]:
        value = self.body.get("details", {}).get("retry_after")
        return int(value) if value is not None else None


class ClientNotFound(ClientError):
    """The note does not exist (or no longer exists)."""


class ClientRequestFailed(ClientError):
    """Any other failure: validation, server error, transport error."""


class NotesClient:
    """
    Usage:
        async with NotesClient("http://localhost:5001") as client:
            note = await client.create_note("Groceries", "Milk, eggs")
            edited = note.model_copy(update={"title": "Shopping"})
            await client.save_note(edited)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5001",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/api",
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "NotesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, str(e))
            raise ClientRequestFailed(f"Could not reach the notes API: {e}")

        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") or response.reason_phrase or "Request failed"

        if response.status_code == 429:
            raise ClientRateLimited(message, response.status_code, body)
        if response.status_code == 404:
            raise ClientNotFound(message, response.status_code, body)
        raise ClientRequestFailed(message, response.status_code, body)

    async def list_notes(self) -> List[NoteResponse]:
        data = await self._request("GET", "/notes")
        return [NoteResponse.model_validate(item) for item in data]

    async def get_note(self, note_id: str) -> NoteResponse:
        data = await self._request("GET", f"/notes/{note_id}")
        return NoteResponse.model_validate(data)

    async def create_note(self, title: str, content: str) -> NoteResponse:
        data = await self._request("POST", "/notes", json={"title": title, "content": content})
        return NoteResponse.model_validate(data["note"])

    async def update_note(self, note_id: str, title: str, content: str) -> NoteResponse:
        data = await self._request(
            "PUT", f"/notes/{note_id}", json={"title": title, "content": content}
        )
        return NoteResponse.model_validate(data["note"])

    async def save_note(self, note: NoteResponse) -> NoteResponse:
        """Sends an edited copy of a note back to the server."""
        return await self.update_note(str(note.id), note.title, note.content)

    async def delete_note(self, note_id: str) -> None:
        await self._request("DELETE", f"/notes/{note_id}")
