import json

import pytest
import requests

from fate_vault.client import CharacterClient, StorageClient
from fate_vault.errors import TransportError


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        if text is None:
            text = json.dumps(body) if body is not None else ""
        self.content = text.encode("utf-8")
        self._text = text

    def json(self):
        return json.loads(self._text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeHTTP:
    """Stands in for requests.Session, recording every request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_list_and_get_character():
    docs = [{"_id": "a", "name": "Ana"}, {"id": "b", "name": "Bo"}]
    http = FakeHTTP(FakeResponse(body=docs), FakeResponse(body=docs), FakeResponse(body=docs))
    client = CharacterClient("http://api.test/", timeout=2, session=http)

    assert client.list_characters() == docs
    assert client.get_character("b")["name"] == "Bo"
    assert client.get_character("zzz") is None
    method, url, kwargs = http.calls[0]
    assert (method, url, kwargs["timeout"]) == ("GET", "http://api.test/characters", 2)


def test_update_and_create_post_json():
    http = FakeHTTP(FakeResponse(body={"name": "Ana"}), FakeResponse(status_code=201, body={"_id": "n", "name": "New"}))
    client = CharacterClient("http://api.test", session=http)

    client.update_character("a/b", {"name": "Ana"})
    assert http.calls[0][:2] == ("POST", "http://api.test/characters/update/a%2Fb")
    assert http.calls[0][2]["json"] == {"name": "Ana"}

    assert client.create_character({"name": "New"})["_id"] == "n"
    assert http.calls[1][1] == "http://api.test/characters/create"


def test_find_characters_query():
    http = FakeHTTP(FakeResponse(body=[]))
    client = CharacterClient("http://api.test", session=http)
    assert client.find_characters(edition="core", character_ids=["a", "b"]) == []
    assert http.calls[0][2]["params"] == {"edition": "core", "characterIds": ["a", "b"]}


def test_http_error_carries_server_message():
    http = FakeHTTP(FakeResponse(status_code=404, body={"error": "character not found"}))
    client = CharacterClient("http://api.test", session=http)
    with pytest.raises(TransportError) as info:
        client.update_character("x", {})
    assert info.value.status == 404
    assert info.value.detail() == "character not found"


def test_plain_text_error_has_no_server_message():
    http = FakeHTTP(FakeResponse(status_code=500, text="find error: boom"))
    client = CharacterClient("http://api.test", session=http)
    with pytest.raises(TransportError) as info:
        client.list_characters()
    assert info.value.server_message is None
    assert "returned 500" in info.value.detail()


def test_connection_error_is_wrapped():
    http = FakeHTTP(requests.ConnectionError("refused"))
    client = CharacterClient("http://api.test", session=http)
    with pytest.raises(TransportError) as info:
        client.list_templates()
    assert info.value.status is None


def test_storage_upload_delete_list():
    http = FakeHTTP(
        FakeResponse(body={"filename": "images/characters/a/file_1", "url": "/download/images/characters/a/file_1"}),
        FakeResponse(body={"message": "File deleted successfully"}),
        FakeResponse(body={"files": [], "count": 0}),
        FakeResponse(body={"status": "ok"}),
    )
    storage = StorageClient("http://storage.test/storage", session=http)

    result = storage.upload_file(b"png", "p.png", folder="images/characters/a", content_type="image/png")
    assert result["filename"] == "images/characters/a/file_1"
    method, url, kwargs = http.calls[0]
    assert (method, url) == ("POST", "http://storage.test/storage/upload")
    assert kwargs["data"] == {"folder": "images/characters/a"}
    assert kwargs["files"]["file"] == ("p.png", b"png", "image/png")

    storage.delete_file("/images/characters/a/file_1")
    assert http.calls[1][1] == "http://storage.test/storage/delete/images/characters/a/file_1"

    assert storage.list_files("images") == {"files": [], "count": 0}
    assert http.calls[2][2]["params"] == {"folder": "images"}

    assert storage.health_check() == {"status": "ok"}


def test_file_url():
    storage = StorageClient("http://storage.test/storage/", session=FakeHTTP())
    assert storage.file_url("/images/a.png") == "http://storage.test/storage/download/images/a.png"
