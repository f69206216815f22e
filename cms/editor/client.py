"""HTTP client for the form store API."""

from typing import Any, Dict, List, Optional, Tuple

import requests

from util.logging import logger
from ..core import config


class StoreRequestError(Exception):
    """A store request failed; carries the server's message when it sent one."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FormStoreClient:
    """
    Thin wrapper over the ``/api/form/{type}`` and login endpoints.

    ``session`` may be any requests-compatible session (the FastAPI test
    client works); cookies it keeps carry the login session.
    """

    def __init__(self, base_url: str = None, session=None):
        self.base_url = (config.EDITOR_API_URL if base_url is None else base_url).rstrip("/")
        self.session = session if session is not None else requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _check(self, response, fallback: str) -> Any:
        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = fallback
            if isinstance(body, dict):
                message = body.get("error") or body.get("detail") or fallback
            logger.warning(f"Store request failed ({response.status_code}): {message}")
            raise StoreRequestError(str(message), response.status_code)
        return body

    def login(self, email: str, password: str) -> Dict[str, Any]:
        response = self.session.post(self._url("/api/login"), json={"email": email, "password": password})
        return self._check(response, "Login failed")

    def logout(self) -> None:
        response = self.session.post(self._url("/api/logout"))
        self._check(response, "Logout failed")

    def fetch(self, form_type: str) -> List[Dict[str, Any]]:
        """All envelopes stored for a type (newest first)."""
        response = self.session.get(self._url(f"/api/form/{form_type}"))
        return self._check(response, "Failed to load data")

    def create(self, form_type: str, data: Dict[str, str],
               files: Dict[str, Tuple[str, bytes, str]] = None) -> Dict[str, Any]:
        response = self.session.post(self._url(f"/api/form/{form_type}"), data=data, files=files or None)
        return self._check(response, "Failed to save data")

    def replace(self, form_type: str, envelope_id: str, data: Dict[str, str],
                files: Dict[str, Tuple[str, bytes, str]] = None) -> Dict[str, Any]:
        body = dict(data)
        body["id"] = envelope_id
        response = self.session.put(self._url(f"/api/form/{form_type}"), data=body, files=files or None)
        return self._check(response, "Failed to update data")

    def delete(self, form_type: str, envelope_id: str) -> None:
        response = self.session.delete(self._url(f"/api/form/{form_type}"), params={"id": envelope_id})
        self._check(response, "Failed to delete data")
