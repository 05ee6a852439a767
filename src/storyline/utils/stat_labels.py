from __future__ import annotations

from storyline.constants import STAT_LABEL_THRESHOLDS, STAT_LABELS, UNKNOWN_STAT_LABEL

# Attribute spellings map onto the document names used by the label tables.
_STAT_ALIASES = {"moral_path": "moralPath"}


def get_stat_label(stat: str, value: int) -> str:
    """Map a stat value to its descriptive label.

    Each bucket's threshold is inclusive, so 20 is still the lowest label and
    21 the next one. Values past the last threshold use the top label.
    """

    labels = STAT_LABELS.get(_STAT_ALIASES.get(stat, stat))
    if labels is None:
        return UNKNOWN_STAT_LABEL
    for threshold, label in zip(STAT_LABEL_THRESHOLDS, labels):
        if value <= threshold:
            return label
    return labels[-1]
