"""Conversion between persisted character documents and the editing model.

Characters in the store were written by several generations of the editor
(mapping-keyed skills, fixed aspect slots, severity-keyed consequences, bare
refresh numbers, stress tracks keyed by name...). Loading goes through two
steps for every field:

1. ``decode_<field>`` inspects the raw value once and returns one variant of
   the closed set declared in :mod:`fate_vault.models`.
2. ``canonical_<field>`` is a single dispatch over those variants producing
   the canonical value.

Nothing in here raises on missing or malformed input; anything unrecognized
decodes to :class:`~fate_vault.models.Missing` and becomes the field default.

The upgrade is one way: :func:`to_persisted` always writes the list-based
shapes and never reproduces a legacy one.
"""
import copy
from collections.abc import Mapping
from functools import singledispatch
from typing import Any

from .models import (
    DEFAULT_CONSEQUENCE_SIZE,
    DEFAULT_CONSEQUENCE_STATUS,
    DEFAULT_CONSEQUENCE_TYPE,
    DEFAULT_LEVEL,
    DEFAULT_REFRESH,
    DEFAULT_STRESS_TRACKS,
    HIGH_CONCEPT,
    OTHER_ASPECT,
    TROUBLE,
    AspectList,
    BareRefresh,
    Character,
    ConsequenceList,
    ConsequenceMap,
    LegacyAspects,
    LegacyStressMap,
    Missing,
    RefreshPair,
    SkillGroupList,
    SkillLevelMap,
    StressTrackList,
    StuntList,
    StuntMap,
)


def _as_int(value: Any):
    """Return ``value`` as an int, or None when it is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _stored_id(item: Any):
    if not isinstance(item, Mapping):
        return None
    return _as_int(item.get("id"))


def _with_ids(entries: list, sources: list | None = None) -> list:
    """Attach an ``id`` to every entry.

    ``sources`` are the raw items the entries came from. A stored integer id
    is kept when no earlier entry holds it; any other entry gets its position,
    or the next free id when its position is taken.
    """
    sources = sources if sources is not None else [None] * len(entries)
    ids = []
    used = set()
    for source in sources:
        stored = _stored_id(source)
        if stored is not None and stored not in used:
            used.add(stored)
            ids.append(stored)
        else:
            ids.append(None)
    for index, value in enumerate(ids):
        if value is None:
            value = index if index not in used else max(used) + 1
            used.add(value)
            ids[index] = value
    return [{"id": entry_id, **entry} for entry_id, entry in zip(ids, entries)]


def _level_label(value: Any) -> str:
    if isinstance(value, str) and value:
        return value
    number = _as_int(value)
    if number is not None:
        return f"{number:+d}"
    return DEFAULT_LEVEL


def _skill_names(value: Any, keep_blank: bool = False) -> list:
    if not isinstance(value, list):
        return []
    return [name for name in value if isinstance(name, str) and (keep_blank or name.strip())]


def default_stress() -> list:
    """Fresh ``physical``/``mental`` tracks with no boxes."""
    return [{"type": name, "boxes": []} for name in DEFAULT_STRESS_TRACKS]


def normalize_box(box: Mapping) -> dict:
    """Convert a legacy ``{size, current}`` box to ``{size, isFilled}``.

    Boxes that already carry ``isFilled`` are returned unchanged.
    """
    if "isFilled" in box:
        return copy.deepcopy(dict(box))
    size = _as_int(box.get("size"))
    current = _as_int(box.get("current"))
    return {
        "size": size if size is not None else 1,
        "isFilled": bool(current is not None and current > 0),
    }


def _consequence(entry: Mapping, default_type: str = DEFAULT_CONSEQUENCE_TYPE) -> dict:
    size = _as_int(entry.get("size"))
    return {
        "type": _as_str(entry.get("type")) or default_type or DEFAULT_CONSEQUENCE_TYPE,
        "size": size if size is not None and size > 0 else DEFAULT_CONSEQUENCE_SIZE,
        "description": _as_str(entry.get("description")),
        "status": _as_str(entry.get("status")) or DEFAULT_CONSEQUENCE_STATUS,
    }


def _stunt(item: Any):
    if isinstance(item, str):
        return {"name": "", "description": item}
    if not isinstance(item, Mapping):
        return None
    if "name" in item or "description" in item:
        return {"name": _as_str(item.get("name")), "description": _as_str(item.get("description"))}
    # single-key {name: description}
    for name, description in item.items():
        return {"name": str(name), "description": _as_str(description)}
    return {"name": "", "description": ""}


def _skill_group(group: Mapping) -> dict:
    # a group carrying an id comes from the editing model; blank names being
    # typed in there are kept until save
    keep_blank = _stored_id(group) is not None
    return {"level": _level_label(group.get("level")), "skills": _skill_names(group.get("skills"), keep_blank)}


# ---------------------------------------------------------------------------
# decode: raw value -> variant


def decode_aspects(raw: Any):
    if isinstance(raw, list):
        return AspectList(raw)
    if isinstance(raw, Mapping):
        others = raw.get("others")
        return LegacyAspects(
            high_concept=raw.get("highConcept"),
            trouble=raw.get("trouble"),
            others=others if isinstance(others, list) else [],
        )
    return Missing()


def decode_skills(raw: Any):
    if isinstance(raw, list):
        return SkillGroupList(raw)
    if isinstance(raw, Mapping):
        return SkillLevelMap(dict(raw))
    return Missing()


def decode_stunts(raw: Any):
    if isinstance(raw, list):
        return StuntList(raw)
    if isinstance(raw, Mapping):
        return StuntMap(dict(raw))
    return Missing()


def decode_consequences(raw: Any):
    if isinstance(raw, list):
        return ConsequenceList(raw)
    if isinstance(raw, Mapping):
        return ConsequenceMap(dict(raw))
    return Missing()


def decode_stress(raw: Any):
    if isinstance(raw, list):
        return StressTrackList(raw)
    if isinstance(raw, Mapping) and raw:
        return LegacyStressMap(dict(raw))
    return Missing()


def decode_refresh(raw: Any):
    if isinstance(raw, Mapping):
        return RefreshPair(current=_as_int(raw.get("current")), max=_as_int(raw.get("max")))
    value = _as_int(raw)
    if value is not None:
        return BareRefresh(value)
    return Missing()


# ---------------------------------------------------------------------------
# convert: variant -> canonical value


@singledispatch
def canonical_aspects(variant) -> list:
    raise TypeError(f"unhandled aspects variant: {variant!r}")


@canonical_aspects.register
def _(variant: Missing) -> list:
    return []


@canonical_aspects.register
def _(variant: AspectList) -> list:
    entries, sources = [], []
    for item in variant.items:
        if isinstance(item, Mapping):
            entries.append({"type": _as_str(item.get("type")), "value": _as_str(item.get("value"))})
        elif isinstance(item, str):
            entries.append({"type": OTHER_ASPECT, "value": item})
        else:
            continue
        sources.append(item)
    return _with_ids(entries, sources)


@canonical_aspects.register
def _(variant: LegacyAspects) -> list:
    entries = []
    if _as_str(variant.high_concept):
        entries.append({"type": HIGH_CONCEPT, "value": variant.high_concept})
    if _as_str(variant.trouble):
        entries.append({"type": TROUBLE, "value": variant.trouble})
    for other in variant.others:
        if _as_str(other):
            entries.append({"type": OTHER_ASPECT, "value": other})
    return _with_ids(entries)


@singledispatch
def canonical_skills(variant) -> list:
    raise TypeError(f"unhandled skills variant: {variant!r}")


@canonical_skills.register
def _(variant: Missing) -> list:
    return []


@canonical_skills.register
def _(variant: SkillGroupList) -> list:
    groups = [group for group in variant.groups if isinstance(group, Mapping)]
    return _with_ids([_skill_group(group) for group in groups], groups)


@canonical_skills.register
def _(variant: SkillLevelMap) -> list:
    return _with_ids(
        [{"level": _level_label(level), "skills": _skill_names(names)} for level, names in variant.levels.items()]
    )


@singledispatch
def canonical_stunts(variant) -> list:
    raise TypeError(f"unhandled stunts variant: {variant!r}")


@canonical_stunts.register
def _(variant: Missing) -> list:
    return []


@canonical_stunts.register
def _(variant: StuntList) -> list:
    entries, sources = [], []
    for item in variant.items:
        stunt = _stunt(item)
        if stunt is not None:
            entries.append(stunt)
            sources.append(item)
    return _with_ids(entries, sources)


@canonical_stunts.register
def _(variant: StuntMap) -> list:
    return _with_ids(
        [{"name": str(name), "description": _as_str(description)} for name, description in variant.entries.items()]
    )


@singledispatch
def canonical_consequences(variant) -> list:
    raise TypeError(f"unhandled consequences variant: {variant!r}")


@canonical_consequences.register
def _(variant: Missing) -> list:
    return []


@canonical_consequences.register
def _(variant: ConsequenceList) -> list:
    items = [item for item in variant.items if isinstance(item, Mapping)]
    return _with_ids([_consequence(item) for item in items], items)


@canonical_consequences.register
def _(variant: ConsequenceMap) -> list:
    entries = []
    for severity, data in variant.entries.items():
        data = data if isinstance(data, Mapping) else {}
        entries.append(_consequence({**data, "type": None}, default_type=str(severity)))
    return _with_ids(entries)


@singledispatch
def canonical_stress(variant) -> list:
    raise TypeError(f"unhandled stress variant: {variant!r}")


@canonical_stress.register
def _(variant: Missing) -> list:
    return default_stress()


@canonical_stress.register
def _(variant: StressTrackList) -> list:
    tracks = []
    for track in variant.tracks:
        if not isinstance(track, Mapping):
            continue
        boxes = track.get("boxes")
        boxes = boxes if isinstance(boxes, list) else []
        tracks.append(
            {
                **copy.deepcopy(dict(track)),
                "type": _as_str(track.get("type")),
                "boxes": [normalize_box(box) for box in boxes if isinstance(box, Mapping)],
            }
        )
    return tracks


@canonical_stress.register
def _(variant: LegacyStressMap) -> list:
    tracks = []
    for name, data in variant.tracks.items():
        boxes = data.get("boxes") if isinstance(data, Mapping) else None
        boxes = boxes if isinstance(boxes, list) else []
        tracks.append({"type": str(name), "boxes": [normalize_box(box) for box in boxes if isinstance(box, Mapping)]})
    return tracks


@singledispatch
def canonical_refresh(variant) -> dict:
    raise TypeError(f"unhandled refresh variant: {variant!r}")


@canonical_refresh.register
def _(variant: Missing) -> dict:
    return {"current": DEFAULT_REFRESH, "max": DEFAULT_REFRESH}


@canonical_refresh.register
def _(variant: BareRefresh) -> dict:
    return {"current": variant.value, "max": variant.value}


@canonical_refresh.register
def _(variant: RefreshPair) -> dict:
    current = variant.current if variant.current is not None else (variant.max or DEFAULT_REFRESH)
    maximum = variant.max if variant.max is not None else (current or DEFAULT_REFRESH)
    return {"current": current, "max": maximum}


# ---------------------------------------------------------------------------
# public API


def is_locked(document: Mapping) -> bool:
    """True iff the document is in play mode.

    A canonical model carries ``locked`` instead of ``playMode``; both are
    understood so normalizing a canonical model keeps its lock state.
    """
    if "playMode" in document:
        return document["playMode"] is True
    return document.get("locked") is True


def to_canonical(document: Any) -> Character:
    """Return the canonical editing model for a persisted ``document``.

    The input is not modified. Unknown top-level fields are deep-copied into
    the result unchanged.
    """
    if not isinstance(document, Mapping):
        document = {}
    model = {key: copy.deepcopy(value) for key, value in document.items() if key not in ("playMode", "locked")}
    model["aspects"] = canonical_aspects(decode_aspects(document.get("aspects")))
    model["skills"] = canonical_skills(decode_skills(document.get("skills")))
    model["stunts"] = canonical_stunts(decode_stunts(document.get("stunts")))
    model["consequences"] = canonical_consequences(decode_consequences(document.get("consequences")))
    model["stress"] = canonical_stress(decode_stress(document.get("stress")))
    model["refresh"] = canonical_refresh(decode_refresh(document.get("refresh")))
    images = document.get("images")
    model["images"] = copy.deepcopy(images) if isinstance(images, list) else []
    model["locked"] = is_locked(document)
    return model


def to_persisted(model: Mapping) -> Character:
    """Return the document to send to the backend for an editing ``model``."""
    document = {key: copy.deepcopy(value) for key, value in model.items() if key != "locked"}

    document["skills"] = [
        {
            "level": group.get("level", DEFAULT_LEVEL),
            "skills": _skill_names(group.get("skills")),
        }
        for group in _entries(model.get("skills"))
    ]
    document["aspects"] = [
        {"type": aspect.get("type", ""), "value": aspect.get("value", "")} for aspect in _entries(model.get("aspects"))
    ]
    document["stunts"] = [
        {"name": stunt.get("name", ""), "description": stunt.get("description", "")}
        for stunt in _entries(model.get("stunts"))
    ]
    document["consequences"] = [_consequence(entry) for entry in _entries(model.get("consequences"))]

    stress = model.get("stress")
    document["stress"] = copy.deepcopy(stress) if isinstance(stress, list) else default_stress()
    document["images"] = copy.deepcopy(model.get("images", []))
    document["playMode"] = bool(model.get("locked"))
    return document


def _entries(value: Any) -> list:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]
