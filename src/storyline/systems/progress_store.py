from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Coroutine, Dict, List, Mapping, Optional, Set

from esper import World

from storyline.components.achievement_log import AchievementLog
from storyline.components.chapter_progress import ChapterProgress, ChoiceRecord
from storyline.components.play_clock import PlayClock
from storyline.components.player_stats import STAT_FIELDS, PlayerStats, clamp_stat
from storyline.components.session_identity import SessionIdentity
from storyline.config import StoryConfig
from storyline.constants import (
    ACHIEVEMENT_CATALOG,
    ACHIEVEMENT_TOAST_DURATION_MS,
    ACHIEVEMENT_TOAST_TITLE,
    BOUNDED_STATS,
    DEFAULT_ACHIEVEMENT_TITLE,
)
from storyline.events.bus import (
    EVENT_ACHIEVEMENT_UNLOCKED,
    EVENT_CHAPTER_COMPLETED,
    EVENT_CHOICE_MADE,
    EVENT_PLAY_TIME_UPDATED,
    EVENT_PROGRESS_LOADED,
    EVENT_PROGRESS_RESET,
    EVENT_SCENE_COMPLETED,
    EVENT_SESSION_CHANGED,
    EVENT_SHOW_TOAST,
    EVENT_STATS_UPDATED,
    EventBus,
)
from storyline.persistence.backend import PersistenceBackend
from storyline.persistence.documents import (
    chapter_key,
    progress_document,
    reconcile_progress,
    reconcile_stats,
    stats_document,
)
from storyline.utils.play_time import format_play_time, round_percentage, whole_minutes
from storyline.utils.stat_labels import get_stat_label

logger = logging.getLogger(__name__)

# Attribute spelling -> document spelling for bounded stats.
_BOUNDED_ATTRS = {STAT_FIELDS[name]: name for name in BOUNDED_STATS}


@dataclass(frozen=True, slots=True)
class ChapterSummary:
    completed: int
    total: int
    percentage: int


class ChapterStatus(Enum):
    LOCKED = auto()
    AVAILABLE = auto()
    IN_PROGRESS = auto()
    COMPLETED = auto()


class ProgressStore:
    """Owns the player's story progress, stats and achievements.

    State lives as components in ``world``; only this store mutates them.
    Mutators update memory synchronously, schedule a best-effort save on the
    backend chosen by the current session (remote when signed in, local as a
    guest) and announce the change on ``event_bus``.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        local_backend: PersistenceBackend,
        *,
        remote_backend: PersistenceBackend | None = None,
        config: StoryConfig | None = None,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self._local_backend = local_backend
        self._remote_backend = remote_backend
        self._config = config or StoryConfig()
        self._clock = clock
        self._monotonic = monotonic
        self._identity: Optional[SessionIdentity] = None
        self._pending: Set[asyncio.Task] = set()

        self._chapter_entities = self._ensure_chapter_entities()
        self._player_entity = self._ensure_player_entity()
        self._play_clock().session_start = self._monotonic()

    # ------------------------------------------------------------------
    # World access
    # ------------------------------------------------------------------
    def _ensure_chapter_entities(self) -> Dict[int, int]:
        entities = {progress.chapter: entity for entity, progress in self.world.get_component(ChapterProgress)}
        for chapter in self._config.chapters:
            if chapter not in entities:
                entities[chapter] = self.world.create_entity(ChapterProgress(chapter=chapter))
        return entities

    def _ensure_player_entity(self) -> int:
        existing = list(self.world.get_component(PlayerStats))
        if existing:
            entity = existing[0][0]
        else:
            entity = self.world.create_entity(PlayerStats())
        if not self.world.has_component(entity, AchievementLog):
            self.world.add_component(entity, AchievementLog())
        if not self.world.has_component(entity, PlayClock):
            self.world.add_component(entity, PlayClock())
        return entity

    def _chapter(self, chapter: int) -> Optional[ChapterProgress]:
        entity = self._chapter_entities.get(chapter)
        if entity is None:
            logger.debug("Ignoring unknown chapter %r", chapter)
            return None
        return self.world.component_for_entity(entity, ChapterProgress)

    def _chapters(self) -> Dict[int, ChapterProgress]:
        return {
            chapter: self.world.component_for_entity(entity, ChapterProgress)
            for chapter, entity in sorted(self._chapter_entities.items())
        }

    def _stats(self) -> PlayerStats:
        return self.world.component_for_entity(self._player_entity, PlayerStats)

    def _achievements(self) -> AchievementLog:
        return self.world.component_for_entity(self._player_entity, AchievementLog)

    def _play_clock(self) -> PlayClock:
        return self.world.component_for_entity(self._player_entity, PlayClock)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------
    @property
    def identity(self) -> Optional[SessionIdentity]:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def chapters(self) -> tuple[int, ...]:
        return tuple(sorted(self._chapter_entities))

    @property
    def stats(self) -> PlayerStats:
        return self._stats()

    @property
    def achievements(self) -> tuple[str, ...]:
        return tuple(self._achievements().unlocked)

    def chapter_progress(self, chapter: int) -> Optional[ChapterProgress]:
        return self._chapter(chapter)

    def progress_document(self) -> Dict[str, Any]:
        return progress_document(self._chapters().values(), self._achievements())

    def stats_document(self) -> Dict[str, int]:
        return stats_document(self._stats())

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {"progress": self.progress_document(), "stats": self.stats_document()}

    # ------------------------------------------------------------------
    # Observer interface
    # ------------------------------------------------------------------
    def on(self, event: str, handler: Callable[..., None]) -> None:
        self.event_bus.subscribe(event, handler)

    def emit(self, event: str, **payload: Any) -> None:
        self.event_bus.emit(event, **payload)

    # ------------------------------------------------------------------
    # Session & persistence
    # ------------------------------------------------------------------
    def on_session_change(self, identity: Optional[SessionIdentity]) -> Optional[asyncio.Task]:
        previous = self._identity.account_id if self._identity else None
        current = identity.account_id if identity else None
        self._identity = identity
        if previous == current:
            return None
        self.event_bus.emit(EVENT_SESSION_CHANGED, identity=identity)
        if identity is None:
            return None
        return self._spawn(self.load())

    def _backend_for(self, identity: Optional[SessionIdentity]) -> PersistenceBackend:
        if identity is not None and self._remote_backend is not None:
            return self._remote_backend
        return self._local_backend

    async def load(self) -> bool:
        """Merge stored documents into memory and announce the refreshed model.

        Missing documents keep the in-memory values. Backend failures are
        logged and leave the model untouched; no event is emitted then.
        """
        identity = self._identity
        account_id = identity.account_id if identity else None
        backend = self._backend_for(identity)
        try:
            progress_doc = await backend.get_progress_document(account_id)
            stats_doc = await backend.get_stats_document(account_id)
        except Exception:
            logger.exception("Failed to load progress for %s", account_id or "guest")
            return False

        current = self._identity.account_id if self._identity else None
        if current != account_id:
            logger.info("Discarding progress loaded for %s after session change", account_id or "guest")
            return False

        try:
            if progress_doc is not None:
                reconcile_progress(self._chapters(), self._achievements(), progress_doc)
            if stats_doc is not None:
                reconcile_stats(self._stats(), stats_doc)
        except Exception:
            logger.exception("Failed to merge progress loaded for %s", account_id or "guest")
            return False
        logger.info("Progress loaded for %s", account_id or "guest")

        snapshot = self.snapshot()
        self.event_bus.emit(EVENT_PROGRESS_LOADED, progress=snapshot["progress"], stats=snapshot["stats"])
        return True

    async def save(self) -> bool:
        identity = self._identity
        account_id = identity.account_id if identity else None
        backend = self._backend_for(identity)
        progress_doc = self.progress_document()
        stats_doc = self.stats_document()
        try:
            await backend.set_progress_document(account_id, progress_doc)
            await backend.set_stats_document(account_id, stats_doc)
        except Exception:
            logger.exception("Failed to save progress for %s", account_id or "guest")
            return False
        logger.debug("Progress saved for %s", account_id or "guest")
        return True

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Synchronous caller without an event loop: finish the work inline.
            asyncio.run(coro)
            return None
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _persist(self) -> None:
        self._spawn(self.save())

    async def flush(self) -> None:
        """Wait for every scheduled load/save to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    # ------------------------------------------------------------------
    # Scenes
    # ------------------------------------------------------------------
    def complete_scene(self, chapter: int, scene_number: int) -> bool:
        progress = self._chapter(chapter)
        if progress is None or not progress.mark_completed(scene_number):
            return False
        self._persist()
        self.event_bus.emit(EVENT_SCENE_COMPLETED, chapter=chapter, scene_number=scene_number)
        return True

    def is_scene_unlocked(self, chapter: int, scene_number: int) -> bool:
        if scene_number == 1:
            return True
        progress = self._chapter(chapter)
        if progress is None:
            return False
        # No upper bound: any scene after a completed one counts as unlocked.
        return progress.has_completed(scene_number - 1)

    def is_scene_completed(self, chapter: int, scene_number: int) -> bool:
        progress = self._chapter(chapter)
        return progress is not None and progress.has_completed(scene_number)

    def get_chapter_progress(self, chapter: int) -> ChapterSummary:
        progress = self._chapter(chapter)
        completed = len(progress.scenes_completed) if progress is not None else 0
        total = self._config.total_scenes(chapter)
        return ChapterSummary(completed=completed, total=total, percentage=round_percentage(completed, total))

    def unlock_all_scenes(self, chapter: int = 1) -> None:
        """Debug helper: complete every scene but the last of ``chapter``."""
        progress = self._chapter(chapter)
        if progress is None:
            return
        for scene_number in range(1, self._config.total_scenes(chapter)):
            progress.mark_completed(scene_number)
        self._persist()
        snapshot = self.snapshot()
        self.event_bus.emit(EVENT_PROGRESS_LOADED, progress=snapshot["progress"], stats=snapshot["stats"])

    # ------------------------------------------------------------------
    # Choices
    # ------------------------------------------------------------------
    def record_choice(self, chapter: int, scene_number: int, choice_index: int, choice_text: str) -> bool:
        progress = self._chapter(chapter)
        if progress is None:
            return False
        progress.add_choice(
            scene_number,
            ChoiceRecord(choice_index=choice_index, text=choice_text, timestamp=self._now_ms()),
        )
        self._stats().choices_made += 1
        self._persist()
        self.event_bus.emit(
            EVENT_CHOICE_MADE,
            chapter=chapter,
            scene_number=scene_number,
            choice_index=choice_index,
        )
        return True

    def get_scene_choices(self, chapter: int, scene_number: int) -> List[ChoiceRecord]:
        progress = self._chapter(chapter)
        if progress is None:
            return []
        return list(progress.choices.get(scene_number, []))

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------
    def update_stats(self, changes: Mapping[str, int]) -> None:
        """Apply signed deltas to the bounded stats, clamping into [0, 100].

        Keys may use the document spelling (``moralPath``) or the attribute
        spelling (``moral_path``). Anything else is ignored.
        """
        stats = self._stats()
        for key, delta in changes.items():
            attr = STAT_FIELDS.get(key, key)
            if attr not in _BOUNDED_ATTRS:
                logger.debug("Ignoring change to unknown stat %r", key)
                continue
            if isinstance(delta, bool) or not isinstance(delta, (int, float)):
                logger.debug("Ignoring non-numeric delta %r for %s", delta, key)
                continue
            setattr(stats, attr, clamp_stat(int(getattr(stats, attr) + delta)))
        self._persist()
        self.event_bus.emit(EVENT_STATS_UPDATED, stats=self.stats_document())

    @staticmethod
    def get_stat_label(stat: str, value: int) -> str:
        return get_stat_label(stat, value)

    # ------------------------------------------------------------------
    # Play time
    # ------------------------------------------------------------------
    def update_play_time(self) -> int:
        """Credit whole elapsed minutes; the sub-minute remainder keeps accruing."""
        clock = self._play_clock()
        minutes = whole_minutes(self._monotonic() - clock.session_start)
        clock.session_start += minutes * 60
        stats = self._stats()
        stats.total_play_time += minutes
        self._persist()
        self.event_bus.emit(EVENT_PLAY_TIME_UPDATED, total_play_time=stats.total_play_time)
        return minutes

    def get_formatted_play_time(self) -> str:
        return format_play_time(self._stats().total_play_time)

    # ------------------------------------------------------------------
    # Achievements & chapters
    # ------------------------------------------------------------------
    def unlock_achievement(self, achievement_id: str, title: str, description: str) -> bool:
        if not self._achievements().unlock(achievement_id):
            return False
        self._persist()
        self.event_bus.emit(
            EVENT_SHOW_TOAST,
            toast_type="success",
            title=ACHIEVEMENT_TOAST_TITLE,
            message=f"{title}: {description}",
            duration=ACHIEVEMENT_TOAST_DURATION_MS,
        )
        self.event_bus.emit(
            EVENT_ACHIEVEMENT_UNLOCKED,
            achievement_id=achievement_id,
            title=title,
            description=description,
        )
        return True

    @staticmethod
    def achievement_title(achievement_id: str) -> str:
        return ACHIEVEMENT_CATALOG.get(achievement_id, DEFAULT_ACHIEVEMENT_TITLE)

    async def complete_chapter(self, chapter: int) -> bool:
        progress = self._chapter(chapter)
        if progress is None:
            return False
        # Repeated completions overwrite the timestamp.
        progress.completed_at = self._now_ms()

        identity = self._identity
        if identity is not None:
            try:
                await self._backend_for(identity).mark_chapter_complete(identity.account_id, chapter_key(chapter))
            except Exception:
                logger.exception("Failed to record completion of chapter %s for %s", chapter, identity.account_id)

        self._persist()
        self.event_bus.emit(EVENT_CHAPTER_COMPLETED, chapter=chapter, completed_at=progress.completed_at)

        title = self._config.chapter_titles.get(chapter)
        if title:
            self.unlock_achievement(f"chapter{chapter}_complete", title, f"Completed Chapter {chapter}")
        return True

    def chapters_completed(self) -> int:
        return sum(1 for progress in self._chapters().values() if progress.completed_at is not None)

    def chapter_status(self, chapter: int) -> ChapterStatus:
        progress = self._chapter(chapter)
        if progress is None:
            return ChapterStatus.LOCKED
        if progress.completed_at is not None:
            return ChapterStatus.COMPLETED
        if progress.scenes_completed:
            return ChapterStatus.IN_PROGRESS
        if chapter == min(self._chapter_entities):
            return ChapterStatus.AVAILABLE
        return ChapterStatus.LOCKED

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------
    def reset_progress(self) -> None:
        """Replace all progress with defaults. Callers confirm with the player first."""
        for chapter, entity in self._chapter_entities.items():
            self.world.add_component(entity, ChapterProgress(chapter=chapter))
        self.world.add_component(self._player_entity, PlayerStats())
        self.world.add_component(self._player_entity, AchievementLog())
        self.world.add_component(self._player_entity, PlayClock(session_start=self._monotonic()))
        logger.info("Progress reset for %s", self._identity.account_id if self._identity else "guest")
        self._persist()
        self.event_bus.emit(EVENT_PROGRESS_RESET)
