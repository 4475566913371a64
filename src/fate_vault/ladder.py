"""Skill levels on the FATE ladder ("+3", "0", "-1"...)."""
import re

LEVEL_PATTERN = re.compile(r"[+-]?[0-9]+")

LADDER = {
    7: "Epic",
    6: "Fantastic",
    5: "Superb",
    4: "Great",
    3: "Good",
    2: "Fair",
    1: "Average",
    0: "Mediocre",
    -1: "Poor",
}


def is_valid_level(label) -> bool:
    return isinstance(label, str) and bool(LEVEL_PATTERN.fullmatch(label))


def level_value(label) -> int:
    """Signed numeric value of a level label; unparsable labels count as 0."""
    if not is_valid_level(label):
        return 0
    return int(label)


def describe_level(label) -> str:
    value = level_value(label)
    if value >= 8:
        return "Legendary"
    return LADDER.get(value, "Terrible")


def sort_skill_groups(groups: list) -> list:
    """Return skill groups ordered from the highest level to the lowest.

    The sort is stable, so groups sharing a level keep their relative order.
    """
    return sorted(groups, key=lambda group: level_value(group.get("level")), reverse=True)
