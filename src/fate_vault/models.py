"""Character document types.

Persisted characters are schemaless: records in the store may have been
written by any generation of the editor, so the document itself stays a plain
mapping. The recognized shapes of each sub-structure are modelled as a closed
set of variants which the normalizer decodes raw values into before
converting them to the canonical editing form.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Character is a schemaless mapping of keys to values decoded from JSON
Character = Dict[str, Any]

EDITIONS = ("core", "accelerated", "condensed", "custom")

DEFAULT_LEVEL = "+0"
DEFAULT_REFRESH = 3
DEFAULT_CONSEQUENCE_TYPE = "minor"
DEFAULT_CONSEQUENCE_SIZE = 2
DEFAULT_CONSEQUENCE_STATUS = "none"
CONSEQUENCE_STATUSES = ("none", "active", "recovering", "healed")
DEFAULT_STRESS_TRACKS = ("physical", "mental")

HIGH_CONCEPT = "High Concept"
TROUBLE = "Trouble"
OTHER_ASPECT = "Other"


@dataclass(frozen=True)
class Missing:
    """Absent or unrecognizable value; converts to the field default."""


# aspects

@dataclass
class AspectList:
    items: List[Any]


@dataclass
class LegacyAspects:
    high_concept: Any = None
    trouble: Any = None
    others: List[Any] = field(default_factory=list)


# skills

@dataclass
class SkillGroupList:
    groups: List[Any]


@dataclass
class SkillLevelMap:
    levels: Dict[str, Any]


# stunts

@dataclass
class StuntList:
    items: List[Any]


@dataclass
class StuntMap:
    entries: Dict[str, Any]


# consequences

@dataclass
class ConsequenceList:
    items: List[Any]


@dataclass
class ConsequenceMap:
    entries: Dict[str, Any]


# stress

@dataclass
class StressTrackList:
    tracks: List[Any]


@dataclass
class LegacyStressMap:
    tracks: Dict[str, Any]


# refresh

@dataclass
class RefreshPair:
    current: Optional[int] = None
    max: Optional[int] = None


@dataclass
class BareRefresh:
    value: int
