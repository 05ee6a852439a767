from __future__ import annotations

from esper import World

from storyline.components.achievement_log import AchievementLog
from storyline.components.chapter_progress import ChapterProgress
from storyline.components.play_clock import PlayClock
from storyline.components.player_stats import PlayerStats
from storyline.config import StoryConfig


def create_world(config: StoryConfig | None = None) -> World:
    """Build a world holding default progress: one entity per chapter plus the player.

    The play clock is started by the ProgressStore that adopts the world.
    """

    config = config or StoryConfig()
    world = World()
    for chapter in config.chapters:
        world.create_entity(ChapterProgress(chapter=chapter))
    world.create_entity(PlayerStats(), AchievementLog(), PlayClock())
    return world
