"""
Notebook API Client.

Async HTTP client the drawer uses to talk to the notebook backend.
Every request carries the acting user (X-User-ID) and X-Frontend-ID:
drawer for log routing. Error envelopes are raised as NotebookApiError.
"""

from typing import Any

import httpx

from notebook.backend.core.config import get_server_base_url
from notebook.backend.core.exceptions import ApplicationError
from notebook.backend.core.logging import get_logger, log_with_source
from notebook.backend.schemas.note import NoteDetail
from notebook.backend.schemas.scope import PageContext, Scope

logger = get_logger(__name__)

API_PREFIX = "/api/v1"


class NotebookApiError(ApplicationError):
    """Raised when the backend answers with an error envelope."""

    def __init__(self, message: str, code: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(message, code=code)


class NotebookClient:
    """
    HTTP client for the notebook API.

    Usage:
        client = NotebookClient(caller_id=42)
        notes, total = await client.list_notes(Scope(course_id=7), limit=20)
        note = await client.read_note(notes[0].id)
    """

    def __init__(
        self,
        caller_id: int,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            caller_id: User the drawer acts for
            base_url: Backend base URL. If None, reads from config/settings/application.yaml.
            timeout: Request timeout in seconds. If None, reads from config/settings/application.yaml.
            transport: Custom httpx transport (tests mount the app in-process)
        """
        if base_url is None or timeout is None:
            config_base_url, config_timeout = get_server_base_url()
            base_url = base_url or config_base_url
            timeout = timeout if timeout is not None else config_timeout

        self.caller_id = caller_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "X-Frontend-ID": "drawer",
                    "X-User-ID": str(self.caller_id),
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _call(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """
        Send a request and unwrap the response envelope.

        Returns:
            The decoded response body

        Raises:
            httpx.HTTPError: On transport failure
            NotebookApiError: If the body reports success: false
        """
        client = await self._get_client()
        url = f"{API_PREFIX}{path}"

        log_with_source(logger, "drawer", "debug", "API request", method=method, path=url)

        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            log_with_source(
                logger, "drawer", "error", "API request failed",
                method=method, path=url, error=str(e),
            )
            raise

        try:
            body = response.json()
        except ValueError:
            raise NotebookApiError(
                f"Unexpected response from {url}",
                code="SYS_BAD_RESPONSE",
                status_code=response.status_code,
            ) from None

        if not body.get("success", False):
            error = body.get("error") or {}
            log_with_source(
                logger, "drawer", "warning", "API error",
                method=method, path=url, status_code=response.status_code, code=error.get("code"),
            )
            raise NotebookApiError(
                error.get("message", "Request failed"),
                code=error.get("code", "SYS_INTERNAL_ERROR"),
                status_code=response.status_code,
            )
        return body

    @staticmethod
    def _scope_params(scope: Scope) -> dict[str, int]:
        return {
            "user_id": scope.user_id,
            "course_id": scope.course_id,
            "module_id": scope.module_id,
        }

    async def resolve_scope(self, page: PageContext) -> Scope:
        body = await self._call("POST", "/scope/resolve", json=page.model_dump())
        return Scope.model_validate(body["data"])

    async def list_notes(self, scope: Scope, limit: int = 20, offset: int = 0) -> tuple[list[NoteDetail], int]:
        """Fetch one page of the ranked list and the total number of notes."""
        params = {**self._scope_params(scope), "limit": limit, "offset": offset}
        body = await self._call("GET", "/notes", params=params)
        notes = [NoteDetail.model_validate(item) for item in body["data"]]
        return notes, body["pagination"]["total"] or 0

    async def form_subject(self, scope: Scope) -> str:
        body = await self._call("GET", "/notes/subject", params=self._scope_params(scope))
        return body["data"]["subject"]

    async def create_note(
        self,
        scope: Scope,
        subject: str,
        body: str,
        attachment_area_id: int = 0,
    ) -> int:
        payload = {
            **self._scope_params(scope),
            "subject": subject,
            "body": body,
            "attachment_area_id": attachment_area_id,
        }
        result = await self._call("POST", "/notes", json=payload)
        return result["data"]["id"]

    async def read_note(self, note_id: int) -> NoteDetail:
        body = await self._call("GET", f"/notes/{note_id}")
        return NoteDetail.model_validate(body["data"])

    async def update_note(self, note_id: int, subject: str, body: str, attachment_area_id: int = 0) -> bool:
        payload = {"subject": subject, "body": body, "attachment_area_id": attachment_area_id}
        result = await self._call("PUT", f"/notes/{note_id}", json=payload)
        return bool(result["data"])

    async def delete_notes(self, note_ids: list[int]) -> bool:
        result = await self._call("POST", "/notes/delete", json={"note_ids": note_ids})
        return bool(result["data"])
