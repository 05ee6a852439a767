from dataclasses import dataclass, field
from typing import List


@dataclass(slots=True)
class AchievementLog:
    """Unlocked achievement ids in unlock order."""

    unlocked: List[str] = field(default_factory=list)

    def unlock(self, achievement_id: str) -> bool:
        if achievement_id in self.unlocked:
            return False
        self.unlocked.append(achievement_id)
        return True
