import pytest

from fate_vault.ladder import describe_level, is_valid_level, level_value, sort_skill_groups


@pytest.mark.parametrize("label", ["+3", "-2", "0", "12"])
def test_valid_levels(label):
    assert is_valid_level(label)


@pytest.mark.parametrize("label", ["abc", "++3", "", "+", "3.5", " 2", None, "+٣", "３"])
def test_invalid_levels(label):
    assert not is_valid_level(label)


def test_level_value_is_signed():
    assert level_value("+3") == 3
    assert level_value("-1") == -1
    assert level_value("0") == 0
    assert level_value("junk") == 0


@pytest.mark.parametrize(
    "label, adjective",
    [("+9", "Legendary"), ("+8", "Legendary"), ("+4", "Great"), ("+0", "Mediocre"), ("-1", "Poor"), ("-3", "Terrible")],
)
def test_describe_level(label, adjective):
    assert describe_level(label) == adjective


def test_sort_descending_and_stable():
    groups = [
        {"id": 0, "level": "+1"},
        {"id": 1, "level": "+3"},
        {"id": 2, "level": "-1"},
        {"id": 3, "level": "+1"},
    ]
    ordered = sort_skill_groups(groups)
    assert [g["level"] for g in ordered] == ["+3", "+1", "+1", "-1"]
    assert [g["id"] for g in ordered if g["level"] == "+1"] == [0, 3]
    assert [g["id"] for g in groups] == [0, 1, 2, 3]
