"""HTTP clients for the character backend and the file storage service.

Both wrap a ``requests.Session``; base URLs and the timeout default to the
values in :mod:`fate_vault.config` and can be overridden per instance.
Requests are never retried: a failure surfaces once as
:class:`~fate_vault.errors.TransportError`.
"""
import logging
from urllib.parse import quote

import requests

from . import config
from .errors import TransportError
from .models import Character

LOG = logging.getLogger(__name__)


def _server_message(resp: requests.Response):
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None


class _Client:
    def __init__(self, base_url: str, timeout: float | None = None, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = config.HTTP_TIMEOUT if timeout is None else timeout
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as ex:
            raise TransportError(f"{method} {url} failed: {ex}") from ex
        try:
            resp.raise_for_status()
        except requests.HTTPError as ex:
            raise TransportError(
                f"{method} {url} returned {resp.status_code}",
                status=resp.status_code,
                server_message=_server_message(resp),
            ) from ex
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as ex:
            raise TransportError(f"{method} {url} returned invalid JSON", status=resp.status_code) from ex


class CharacterClient(_Client):
    """Characters and templates on the backend API."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None, session: requests.Session | None = None):
        super().__init__(base_url or config.API_BASE_URL, timeout, session)

    def list_characters(self) -> list[Character]:
        return self._request("GET", "/characters") or []

    def get_character(self, character_id: str) -> Character | None:
        """Fetch all characters and return the one with ``character_id``.

        The backend has no single-character route; records are matched on
        ``_id`` falling back to ``id``.
        """
        for doc in self.list_characters():
            if (doc.get("_id") or doc.get("id")) == character_id:
                return doc
        return None

    def find_characters(self, edition: str | None = None, name: str | None = None, character_ids: list[str] | None = None) -> list[Character]:
        params = {}
        if edition:
            params["edition"] = edition
        if name:
            params["name"] = name
        if character_ids:
            params["characterIds"] = list(character_ids)
        return self._request("GET", "/characters/find", params=params) or []

    def create_character(self, document: Character) -> Character:
        LOG.info("Creating character %s", document.get("name", ""))
        return self._request("POST", "/characters/create", json=document)

    def update_character(self, character_id: str, document: Character) -> Character:
        LOG.info("Updating character %s", character_id)
        return self._request("POST", f"/characters/update/{quote(character_id, safe='')}", json=document)

    def delete_character(self, character_id: str) -> dict:
        LOG.info("Deleting character %s", character_id)
        return self._request("DELETE", f"/characters/delete/{quote(character_id, safe='')}")

    def list_templates(self) -> list[dict]:
        return self._request("GET", "/templates") or []


class StorageClient(_Client):
    """Image files kept by the storage service."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None, session: requests.Session | None = None):
        super().__init__(base_url or config.STORAGE_BASE_URL, timeout, session)

    def upload_file(self, data: bytes, filename: str, folder: str = "", content_type: str = "application/octet-stream") -> dict:
        """Upload ``data`` into ``folder``; returns ``{filename, url, ...}``."""
        form = {"folder": folder} if folder else {}
        files = {"file": (filename, data, content_type)}
        LOG.info("Uploading %s (%d bytes) to %r", filename, len(data), folder)
        return self._request("POST", "/upload", data=form, files=files)

    def delete_file(self, filename: str) -> dict:
        return self._request("DELETE", f"/delete/{quote(filename.lstrip('/'))}")

    def list_files(self, folder: str = "") -> dict:
        params = {"folder": folder} if folder else {}
        return self._request("GET", "/list", params=params) or {"files": [], "count": 0}

    def health_check(self) -> dict:
        return self._request("GET", "/health")

    def file_url(self, filename: str) -> str:
        return f"{self.base_url}/download/{filename.lstrip('/')}"
