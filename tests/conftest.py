import copy

import pytest

from fate_vault.errors import TransportError
from fate_vault.session import EditingSession


LEGACY_CHARACTER = {
    "_id": "c1",
    "name": "Zird the Arcane",
    "edition": "core",
    "aspects": {"highConcept": "Wizard for hire", "trouble": "Rivals everywhere", "others": ["", "Owes the guild"]},
    "skills": {"+3": ["Lore"], "+2": ["Will", "Empathy"], "+1": []},
    "stunts": {"Ritualist": "Use Lore instead of another skill once per session."},
    "consequences": {
        "minor": {"size": 2, "description": "", "status": "none"},
        "moderate": {"size": 4, "description": "Burned hand", "status": "active"},
    },
    "stress": [
        {"type": "physical", "boxes": [{"size": 1, "current": 1}, {"size": 2, "current": 0}]},
        {"type": "mental", "boxes": [{"size": 1, "isFilled": True}]},
    ],
    "refresh": 2,
    "images": ["images/characters/c1/file_1"],
    "notes": "Met the party in Oldport.",
}


class FakeCharacters:
    def __init__(self, characters=None, templates=None, fail=None):
        self.characters = characters if characters is not None else [copy.deepcopy(LEGACY_CHARACTER)]
        self.templates = templates if templates is not None else []
        self.fail = fail
        self.updates = []
        self.created = []

    def _maybe_fail(self):
        if self.fail is not None:
            raise self.fail

    def list_characters(self):
        self._maybe_fail()
        return copy.deepcopy(self.characters)

    def get_character(self, character_id):
        for doc in self.list_characters():
            if (doc.get("_id") or doc.get("id")) == character_id:
                return doc
        return None

    def list_templates(self):
        self._maybe_fail()
        return copy.deepcopy(self.templates)

    def update_character(self, character_id, document):
        self._maybe_fail()
        self.updates.append((character_id, copy.deepcopy(document)))
        return document

    def create_character(self, document):
        self._maybe_fail()
        self.created.append(copy.deepcopy(document))
        return {**document, "_id": "new-id"}


class FakeStorage:
    base_url = "http://storage.test/storage"

    def __init__(self, fail_delete=False, fail_upload=None):
        self.fail_delete = fail_delete
        self.fail_upload = fail_upload
        self.uploads = []
        self.deleted = []

    def upload_file(self, data, filename, folder="", content_type="application/octet-stream"):
        if self.fail_upload is not None:
            raise self.fail_upload
        self.uploads.append((filename, folder, content_type, len(data)))
        name = f"{folder}/file_{len(self.uploads)}"
        return {"filename": name, "url": f"/download/{name}"}

    def delete_file(self, filename):
        if self.fail_delete:
            raise TransportError("DELETE failed", status=500)
        self.deleted.append(filename)
        return {"filename": filename}

    def file_url(self, filename):
        return f"{self.base_url}/download/{filename.lstrip('/')}"


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def characters():
    return FakeCharacters()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def session(characters, storage, clock):
    return EditingSession(characters, storage, message_ttl=3, clock=clock)


@pytest.fixture
def loaded(session):
    session.load("c1")
    return session
