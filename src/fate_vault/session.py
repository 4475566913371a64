"""Editing session for a single character.

The session owns the canonical editing model (see
:func:`fate_vault.normalizer.to_canonical`) and is the only place it is
mutated. Loading normalizes the fetched document once; saving converts the
model back with :func:`fate_vault.normalizer.to_persisted` and hands it to the
backend. Failures set a user-facing message on the session and are re-raised
as one of the exceptions in :mod:`fate_vault.errors`.
"""
import copy
import logging
import time

from . import config
from .client import CharacterClient, StorageClient
from .errors import (
    CharacterNotFound,
    LoadError,
    SaveError,
    TemplateNotFound,
    TransportError,
    UploadError,
    UploadValidationError,
)
from .ladder import describe_level, is_valid_level, sort_skill_groups
from .models import (
    DEFAULT_CONSEQUENCE_SIZE,
    DEFAULT_CONSEQUENCE_STATUS,
    DEFAULT_CONSEQUENCE_TYPE,
    DEFAULT_LEVEL,
    OTHER_ASPECT,
    Character,
)
from .normalizer import to_canonical, to_persisted

LOG = logging.getLogger(__name__)

LOAD_FAILED = "Failed to load character. Please make sure the backend is running."
NOT_FOUND = "Character not found"
TEMPLATE_NOT_FOUND = "Template not found"
SAVED = "Character saved successfully!"
NOT_AN_IMAGE = "Please select an image file"
IMAGE_TOO_LARGE = "File size must be less than 10MB"

# template keys that must not leak into a new character
_TEMPLATE_ONLY_KEYS = ("_id", "id", "createdAt", "updatedAt")


class TransientMessage:
    """A status text that reads back empty once ``ttl`` seconds have passed."""

    def __init__(self, ttl: float | None = None, clock=time.monotonic):
        self.ttl = config.MESSAGE_TTL if ttl is None else ttl
        self._clock = clock
        self._text = ""
        self._expires_at = None

    def set(self, text: str, transient: bool = True) -> None:
        self._text = text
        self._expires_at = self._clock() + self.ttl if transient else None

    def clear(self) -> None:
        self._text = ""
        self._expires_at = None

    @property
    def text(self) -> str:
        if self._expires_at is not None and self._clock() >= self._expires_at:
            self.clear()
        return self._text

    def __bool__(self) -> bool:
        return bool(self.text)

    def __str__(self) -> str:
        return self.text


def _next_id(entries: list) -> int:
    ids = [entry.get("id") for entry in entries if isinstance(entry.get("id"), int)]
    return max(ids) + 1 if ids else 0


class EditingSession:
    def __init__(
        self,
        characters: CharacterClient | None = None,
        storage: StorageClient | None = None,
        message_ttl: float | None = None,
        max_image_bytes: int | None = None,
        clock=time.monotonic,
    ):
        self.characters = characters or CharacterClient()
        self.storage = storage or StorageClient()
        self.max_image_bytes = config.MAX_IMAGE_BYTES if max_image_bytes is None else max_image_bytes

        self.character_id: str | None = None
        self.creating = False
        self.original: Character | None = None
        self.character: Character = {}

        self.loading = False
        self.saving = False
        self.uploading = False
        self.error: str | None = None
        self.save_success = False
        self.save_message = TransientMessage(message_ttl, clock)
        self.upload_error = TransientMessage(message_ttl, clock)

    # ------------------------------------------------------------------
    # lifecycle

    def load(self, character_id: str) -> Character:
        """Fetch ``character_id`` and make it the model being edited."""
        self.loading = True
        self.error = None
        self.character = {}
        try:
            try:
                doc = self.characters.get_character(character_id)
            except TransportError as ex:
                LOG.warning("Error loading character %s: %s", character_id, ex)
                self.error = LOAD_FAILED
                raise LoadError(LOAD_FAILED) from ex
            if doc is None:
                self.error = NOT_FOUND
                raise CharacterNotFound(NOT_FOUND)
            self.original = copy.deepcopy(doc)
            self.character = to_canonical(doc)
            self.character_id = character_id
            self.creating = False
            LOG.info("Loaded character %s", character_id)
            return self.character
        finally:
            self.loading = False

    def load_template(self, edition: str | None = None) -> Character:
        """Start a new character from the template matching ``edition``.

        Falls back to the first template when none matches exactly.
        """
        self.loading = True
        self.error = None
        self.character = {}
        try:
            try:
                templates = self.characters.list_templates()
            except TransportError as ex:
                LOG.warning("Error loading templates: %s", ex)
                self.error = LOAD_FAILED
                raise LoadError(LOAD_FAILED) from ex
            if not templates:
                self.error = TEMPLATE_NOT_FOUND
                raise TemplateNotFound(TEMPLATE_NOT_FOUND)
            template = next((t for t in templates if t.get("edition") == edition), templates[0])
            self.start_new(template)
            LOG.info("Started new character from %s template", template.get("edition"))
            return self.character
        finally:
            self.loading = False

    def start_new(self, document: Character) -> Character:
        """Enter creation mode with ``document`` as the unsaved model."""
        doc = {key: value for key, value in document.items() if key not in _TEMPLATE_ONLY_KEYS}
        self.original = None
        self.character = to_canonical(doc)
        self.character_id = None
        self.creating = True
        return self.character

    def persisted(self) -> Character:
        return to_persisted(self.character)

    def save(self) -> Character:
        """Write the model to the backend (create in creation mode)."""
        if not self.creating and self.character_id is None:
            raise SaveError("No character loaded")
        self.saving = True
        self.save_message.clear()
        document = self.persisted()
        try:
            if self.creating:
                result = self.characters.create_character(document)
            else:
                result = self.characters.update_character(self.character_id, document)
        except TransportError as ex:
            message = "Failed to save character: " + ex.detail()
            LOG.warning("Error saving character %s: %s", self.character_id, ex)
            self.save_success = False
            self.save_message.set(message, transient=False)
            raise SaveError(message) from ex
        finally:
            self.saving = False

        if self.creating:
            new_id = (result.get("_id") or result.get("id")) if isinstance(result, dict) else None
            if new_id:
                self.character_id = new_id
                self.character["_id"] = new_id
            self.creating = False
        self.save_success = True
        self.save_message.set(SAVED)
        return result

    # ------------------------------------------------------------------
    # model accessors

    def _list(self, name: str) -> list:
        value = self.character.get(name)
        if not isinstance(value, list):
            value = self.character[name] = []
        return value

    @property
    def aspects(self) -> list:
        return self._list("aspects")

    @property
    def skills(self) -> list:
        return self._list("skills")

    @property
    def stunts(self) -> list:
        return self._list("stunts")

    @property
    def consequences(self) -> list:
        return self._list("consequences")

    @property
    def stress(self) -> list:
        return self._list("stress")

    @property
    def images(self) -> list:
        return self._list("images")

    @property
    def refresh(self) -> dict:
        value = self.character.get("refresh")
        if not isinstance(value, dict):
            value = self.character["refresh"] = {"current": 0, "max": 3}
        return value

    @property
    def locked(self) -> bool:
        return bool(self.character.get("locked"))

    # ------------------------------------------------------------------
    # ordering

    def reorder(self, name: str, source: int, destination: int) -> None:
        """Move the element at ``source`` to ``destination`` in list ``name``."""
        if source == destination:
            return
        items = self._list(name)
        item = items.pop(source)
        items.insert(destination, item)

    def move_aspect(self, source: int, destination: int) -> None:
        self.reorder("aspects", source, destination)

    def move_stunt(self, source: int, destination: int) -> None:
        self.reorder("stunts", source, destination)

    def move_consequence(self, source: int, destination: int) -> None:
        self.reorder("consequences", source, destination)

    # ------------------------------------------------------------------
    # skills

    def _group(self, group_id):
        return next((group for group in self.skills if group.get("id") == group_id), None)

    def add_skill(self, group_id, name: str = "") -> None:
        group = self._group(group_id)
        if group is not None:
            group.setdefault("skills", []).append(name)

    def remove_skill(self, group_id, index: int) -> None:
        group = self._group(group_id)
        if group is not None:
            del group["skills"][index]

    def update_skill(self, group_id, index: int, name: str) -> None:
        group = self._group(group_id)
        if group is not None:
            group["skills"][index] = name

    def add_skill_level(self, level: str = DEFAULT_LEVEL) -> dict:
        if not is_valid_level(level):
            raise ValueError(f"invalid skill level: {level!r}")
        group = {"id": _next_id(self.skills), "level": level, "skills": []}
        self.skills.append(group)
        return group

    def remove_skill_level(self, group_id) -> None:
        for index, group in enumerate(self.skills):
            if group.get("id") == group_id:
                del self.skills[index]
                return

    def update_skill_level(self, group_id, level: str) -> bool:
        """Relabel a group; labels that are not ``[+-]digits`` are ignored."""
        if not is_valid_level(level):
            return False
        group = self._group(group_id)
        if group is None:
            return False
        group["level"] = level
        return True

    def move_skill(self, source_group_id, index: int, destination_group_id, destination_index: int | None = None) -> bool:
        """Move a skill name from one level group to another."""
        source = self._group(source_group_id)
        destination = self._group(destination_group_id)
        if source is None or destination is None:
            return False
        name = source["skills"].pop(index)
        target = destination.setdefault("skills", [])
        if destination_index is None:
            target.append(name)
        else:
            target.insert(destination_index, name)
        return True

    def sorted_skills(self) -> list:
        return sort_skill_groups(self.skills)

    @staticmethod
    def describe_level(level: str) -> str:
        return describe_level(level)

    # ------------------------------------------------------------------
    # stunts, consequences, aspects

    def add_stunt(self, name: str = "", description: str = "") -> dict:
        stunt = {"id": _next_id(self.stunts), "name": name, "description": description}
        self.stunts.append(stunt)
        return stunt

    def remove_stunt(self, index: int) -> None:
        del self.stunts[index]

    def add_consequence(self) -> dict:
        consequence = {
            "id": _next_id(self.consequences),
            "type": DEFAULT_CONSEQUENCE_TYPE,
            "size": DEFAULT_CONSEQUENCE_SIZE,
            "description": "",
            "status": DEFAULT_CONSEQUENCE_STATUS,
        }
        self.consequences.append(consequence)
        return consequence

    def remove_consequence(self, index: int) -> None:
        del self.consequences[index]

    def add_aspect(self, aspect_type: str = OTHER_ASPECT, value: str = "") -> dict:
        aspect = {"id": _next_id(self.aspects), "type": aspect_type, "value": value}
        self.aspects.append(aspect)
        return aspect

    def remove_aspect(self, index: int) -> None:
        del self.aspects[index]

    # ------------------------------------------------------------------
    # stress

    def add_stress_track(self, name: str = "new") -> dict:
        track = {"type": name, "boxes": []}
        self.stress.append(track)
        return track

    def remove_stress_track(self, index: int) -> None:
        del self.stress[index]

    def add_stress_box(self, track_index: int, size: int = 1) -> None:
        self.stress[track_index].setdefault("boxes", []).append({"size": size, "isFilled": False})

    def remove_stress_box(self, track_index: int, box_index: int) -> None:
        del self.stress[track_index]["boxes"][box_index]

    def toggle_stress_box(self, track_index: int, box_index: int) -> bool:
        box = self.stress[track_index]["boxes"][box_index]
        box["isFilled"] = not box.get("isFilled")
        return box["isFilled"]

    def rename_stress_track(self, index: int, name: str) -> None:
        """Rename a track, merging it into another track already using ``name``.

        On a merge the renamed track's boxes are appended after the existing
        track's boxes and the renamed track is removed.
        """
        track = self.stress[index]
        if not name or track.get("type") == name:
            return
        existing = next((t for i, t in enumerate(self.stress) if i != index and t.get("type") == name), None)
        if existing is None:
            track["type"] = name
            return
        existing.setdefault("boxes", []).extend(track.get("boxes", []))
        del self.stress[index]

    # ------------------------------------------------------------------
    # refresh and play mode

    def update_refresh(self, field: str, delta: int) -> dict:
        """Adjust refresh ``current`` (within ``[0, max]``) or ``max`` (at least 1)."""
        refresh = self.refresh
        maximum = refresh.get("max") or 0
        current = refresh.get("current") or 0
        if field == "current":
            refresh["current"] = min(max(current + delta, 0), maximum)
        elif field == "max":
            maximum = max(maximum + delta, 1)
            refresh["max"] = maximum
            if current > maximum:
                refresh["current"] = maximum
        else:
            raise ValueError(f"unknown refresh field: {field!r}")
        return refresh

    def lock(self) -> None:
        self.character["locked"] = True

    def unlock(self) -> None:
        self.character["locked"] = False

    def toggle_lock(self) -> bool:
        self.character["locked"] = not self.locked
        return self.character["locked"]

    # ------------------------------------------------------------------
    # images

    def upload_image(self, data: bytes, filename: str, content_type: str) -> str:
        """Validate and upload an image, appending its storage name to the model."""
        if not content_type or not content_type.startswith("image/"):
            self.upload_error.set(NOT_AN_IMAGE)
            raise UploadValidationError(NOT_AN_IMAGE)
        if len(data) > self.max_image_bytes:
            self.upload_error.set(IMAGE_TOO_LARGE)
            raise UploadValidationError(IMAGE_TOO_LARGE)

        self.uploading = True
        self.upload_error.clear()
        folder = f"{config.IMAGE_FOLDER}/{self.character_id or 'temp'}"
        try:
            result = self.storage.upload_file(data, filename, folder=folder, content_type=content_type)
        except TransportError as ex:
            message = "Failed to upload image: " + ex.detail()
            LOG.warning("Error uploading image %s: %s", filename, ex)
            self.upload_error.set(message, transient=False)
            raise UploadError(message) from ex
        finally:
            self.uploading = False
        self.images.append(result["filename"])
        return result["filename"]

    def remove_image(self, index: int) -> None:
        """Drop an image from the model; storage deletion is best effort."""
        name = self.images[index]
        try:
            self.storage.delete_file(name)
        except TransportError as ex:
            LOG.warning("Could not delete image %s from storage: %s", name, ex)
        del self.images[index]

    def image_url(self, name: str) -> str:
        if name.startswith(("http://", "https://")):
            return name
        return self.storage.file_url(name)
