"""
HTTP client for the notes service.

The service exposes JSON endpoints for authentication, notes and notebooks:

- ``POST /auth/login`` returns an ``accessToken``
- ``GET /notes``, ``GET /notes/{id}``, ``POST /notes``, ``PATCH /notes/{id}``
- ``POST /notes/bulk`` with ``{"notes": [...]}`` creates several notes at once
- ``POST /notebooks`` creates a notebook

``NotesApiClient`` makes blocking calls with requests. ``AsyncNotesApi`` exposes
the calls used during an import as coroutines, running each blocking call in a
worker thread.
"""

import asyncio
from typing import Any, Dict, List, Optional, Type

import requests

from common.errors import BulkCollaboratorError, CollaboratorError
from common.logging import get_or_setup_logger

DEFAULT_API_URL = "http://localhost:4000/api"
DEFAULT_TIMEOUT = 30


def error_message(response: requests.Response) -> str:
    """
    Message of a failed response.

    The ``message`` field of a JSON error body when present (joined when the
    service returns a list of validation messages), otherwise the status code.
    """
    try:
        body = response.json()
    except ValueError:
        return "An error occurred"

    message = body.get("message") if isinstance(body, dict) else None
    if isinstance(message, list):
        message = ", ".join(str(item) for item in message)
    return message or f"HTTP error! status: {response.status_code}"


class NotesApiClient:
    """
    Blocking client for the notes service.

    Parameters
    ----------
    base_url : str
        Base URL of the API, without a trailing slash.
    token : str, optional
        Bearer token. Can also be obtained with ``login``.
    session : requests.Session, optional
        Session to use for all requests.
    timeout : float
        Timeout of each request in seconds.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = get_or_setup_logger()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        endpoint: str,
        payload: Optional[Any] = None,
        error_class: Type[CollaboratorError] = CollaboratorError,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        self.logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method, url, json=payload, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise error_class(str(e)) from e

        if not response.ok:
            raise error_class(error_message(response), status_code=response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def login(self, email: str, password: str) -> str:
        """
        Authenticate and keep the access token for later calls.

        Returns
        -------
        str
            The access token.
        """
        result = self._request("POST", "/auth/login", {"email": email, "password": password})
        self.token = result["accessToken"]
        return self.token

    def list_notes(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/notes") or []

    def get_note(self, note_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/notes/{note_id}")

    def create_note(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/notes", payload)

    def bulk_create_notes(self, payloads: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Create several notes in one call.

        Raises
        ------
        BulkCollaboratorError
            If the call fails as a whole.
        """
        return self._request("POST", "/notes/bulk", {"notes": payloads}, error_class=BulkCollaboratorError) or []

    def update_note(self, note_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PATCH", f"/notes/{note_id}", payload)

    def create_notebook(self, name: str, color: Optional[str] = None) -> Dict[str, Any]:
        payload = {"name": name}
        if color:
            payload["color"] = color
        return self._request("POST", "/notebooks", payload)


class AsyncNotesApi:
    """
    Coroutine interface over ``NotesApiClient`` used by the batch importer.
    """

    def __init__(self, client: NotesApiClient):
        self.client = client

    async def create_note(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self.client.create_note, payload)

    async def bulk_create_notes(self, payloads: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self.client.bulk_create_notes, payloads)

    async def update_note(self, note_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self.client.update_note, note_id, payload)

    async def create_notebook(self, name: str, color: Optional[str] = None) -> Dict[str, Any]:
        return await asyncio.to_thread(self.client.create_notebook, name, color)
