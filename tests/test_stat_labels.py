import pytest

from storyline.constants import UNKNOWN_STAT_LABEL
from storyline.utils.stat_labels import get_stat_label


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "Corrupted"),
        (20, "Corrupted"),
        (21, "Compromised"),
        (40, "Compromised"),
        (60, "Wavering"),
        (80, "Strong"),
        (81, "Unwavering"),
        (100, "Unwavering"),
    ],
)
def test_integrity_labels_use_inclusive_upper_bounds(value, expected):
    assert get_stat_label("integrity", value) == expected


def test_each_stat_has_its_own_label_set():
    assert get_stat_label("reputation", 50) == "Neutral"
    assert get_stat_label("moralPath", 10) == "Corrupt"
    assert get_stat_label("influence", 75) == "Significant"


def test_attribute_spelling_is_accepted():
    assert get_stat_label("moral_path", 90) == "Righteous"


def test_values_above_range_use_top_label():
    assert get_stat_label("reputation", 150) == "Renowned"


def test_unknown_stat_returns_sentinel():
    assert get_stat_label("charisma", 50) == UNKNOWN_STAT_LABEL
