from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

from storyline.constants import (
    CHAPTER_ACHIEVEMENT_TITLES,
    CHAPTER_NUMBERS,
    PLAY_TIME_INTERVAL,
    SCENES_PER_CHAPTER,
)

logger = logging.getLogger(__name__)


def _default_storage_dir() -> Path:
    return Path(__file__).resolve().parents[2] / "data"


@dataclass(slots=True)
class StoryConfig:
    """Per-instance tuning for the progress engine.

    chapters: chapter numbers tracked by the store.
    scenes_per_chapter: chapter number -> total scene count; chapters missing
        from the mapping fall back to ``default_scene_count``.
    chapter_titles: chapter number -> completion achievement title.
    """

    chapters: Tuple[int, ...] = CHAPTER_NUMBERS
    scenes_per_chapter: Dict[int, int] = field(default_factory=dict)
    default_scene_count: int = SCENES_PER_CHAPTER
    chapter_titles: Dict[int, str] = field(default_factory=lambda: dict(CHAPTER_ACHIEVEMENT_TITLES))
    play_time_interval: float = PLAY_TIME_INTERVAL
    storage_dir: Path = field(default_factory=_default_storage_dir)

    def total_scenes(self, chapter: int) -> int:
        return self.scenes_per_chapter.get(chapter, self.default_scene_count)

    @classmethod
    def from_env(cls) -> "StoryConfig":
        config = cls()
        storage_dir = os.environ.get("STORYLINE_STORAGE_DIR")
        if storage_dir:
            config.storage_dir = Path(storage_dir)
        interval = os.environ.get("STORYLINE_PLAY_TIME_INTERVAL")
        if interval:
            try:
                config.play_time_interval = float(interval)
            except ValueError:
                logger.warning("Ignoring non-numeric STORYLINE_PLAY_TIME_INTERVAL=%r", interval)
        return config
