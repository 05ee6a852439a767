from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(slots=True)
class ChoiceRecord:
    """A single decision taken in a scene (timestamp in epoch milliseconds)."""

    choice_index: int
    text: str
    timestamp: int


@dataclass(slots=True)
class ChapterProgress:
    """Per-chapter progress attached to one entity for each chapter."""

    chapter: int
    scenes_completed: List[int] = field(default_factory=list)
    current_scene: int = 1
    choices: Dict[int, List[ChoiceRecord]] = field(default_factory=dict)
    completed_at: int | None = None

    def has_completed(self, scene_number: int) -> bool:
        return scene_number in self.scenes_completed

    def mark_completed(self, scene_number: int) -> bool:
        """Append ``scene_number`` once; returns False when it was already present."""
        if scene_number in self.scenes_completed:
            return False
        self.scenes_completed.append(scene_number)
        if scene_number + 1 > self.current_scene:
            self.current_scene = scene_number + 1
        return True

    def add_choice(self, scene_number: int, record: ChoiceRecord) -> None:
        self.choices.setdefault(scene_number, []).append(record)
