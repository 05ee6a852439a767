from dataclasses import dataclass

from storyline.constants import STAT_MAX, STAT_MIN

# Document field name -> attribute name.
STAT_FIELDS = {
    "integrity": "integrity",
    "reputation": "reputation",
    "moralPath": "moral_path",
    "influence": "influence",
    "totalPlayTime": "total_play_time",
    "choicesMade": "choices_made",
}


def clamp_stat(value: int) -> int:
    return max(STAT_MIN, min(STAT_MAX, value))


@dataclass(slots=True)
class PlayerStats:
    """Global character stats; the four bounded stats always sit in [0, 100]."""

    integrity: int = 100
    reputation: int = 50
    moral_path: int = 50
    influence: int = 10
    total_play_time: int = 0
    choices_made: int = 0

    def clamp(self) -> None:
        self.integrity = clamp_stat(self.integrity)
        self.reputation = clamp_stat(self.reputation)
        self.moral_path = clamp_stat(self.moral_path)
        self.influence = clamp_stat(self.influence)
