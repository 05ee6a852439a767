"""Progress/stats document shapes and the reconciliation rules used on load.

Both backends exchange plain ``dict`` documents:

* progress: ``{"chapter1": {...}, ..., "achievements": [...]}`` where each
  chapter map holds ``scenesCompleted``, ``currentScene``, ``choices``
  (``"scene<N>" -> [{"id", "text", "timestamp"}]``) and ``completedAt``.
* stats: ``{"integrity", "reputation", "moralPath", "influence",
  "totalPlayTime", "choicesMade"}``.

Reconciliation is field by field: a loaded value wins when it is present and
well-typed, otherwise the in-memory value is kept. Keys the engine does not
know about are ignored.
"""
from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from storyline.components.achievement_log import AchievementLog
from storyline.components.chapter_progress import ChapterProgress, ChoiceRecord
from storyline.components.player_stats import STAT_FIELDS, PlayerStats

ACHIEVEMENTS_KEY = "achievements"


def chapter_key(chapter: int) -> str:
    return f"chapter{chapter}"


def scene_key(scene_number: int) -> str:
    return f"scene{scene_number}"


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def _parse_scene_key(key: Any) -> Optional[int]:
    if isinstance(key, int) and not isinstance(key, bool):
        return key
    if not isinstance(key, str):
        return None
    digits = key[len("scene"):] if key.startswith("scene") else key
    try:
        return int(digits)
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------

def choice_to_dict(record: ChoiceRecord) -> Dict[str, Any]:
    return {"id": record.choice_index, "text": record.text, "timestamp": record.timestamp}


def chapter_to_dict(progress: ChapterProgress) -> Dict[str, Any]:
    return {
        "scenesCompleted": list(progress.scenes_completed),
        "currentScene": progress.current_scene,
        "choices": {
            scene_key(scene): [choice_to_dict(record) for record in records]
            for scene, records in progress.choices.items()
        },
        "completedAt": progress.completed_at,
    }


def progress_document(chapters: Iterable[ChapterProgress], achievements: AchievementLog) -> Dict[str, Any]:
    document: Dict[str, Any] = {
        chapter_key(progress.chapter): chapter_to_dict(progress) for progress in chapters
    }
    document[ACHIEVEMENTS_KEY] = list(achievements.unlocked)
    return document


def stats_document(stats: PlayerStats) -> Dict[str, int]:
    return {name: getattr(stats, attr) for name, attr in STAT_FIELDS.items()}


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

def _parse_choice(raw: Any) -> Optional[ChoiceRecord]:
    if not isinstance(raw, Mapping):
        return None
    index = _as_int(raw.get("id"))
    if index is None:
        return None
    text = raw.get("text")
    timestamp = _as_int(raw.get("timestamp"))
    return ChoiceRecord(
        choice_index=index,
        text=text if isinstance(text, str) else "",
        timestamp=timestamp if timestamp is not None else 0,
    )


def _parse_choices(raw: Mapping) -> Dict[int, List[ChoiceRecord]]:
    choices: Dict[int, List[ChoiceRecord]] = {}
    for key, records in raw.items():
        scene = _parse_scene_key(key)
        if scene is None or not isinstance(records, list):
            continue
        parsed = [record for record in map(_parse_choice, records) if record is not None]
        choices[scene] = parsed
    return choices


def reconcile_chapter(progress: ChapterProgress, document: Any) -> None:
    """Apply a loaded chapter map onto ``progress`` in place."""
    if not isinstance(document, Mapping):
        return

    scenes = document.get("scenesCompleted")
    if isinstance(scenes, list):
        deduped: List[int] = []
        for raw in scenes:
            scene = _as_int(raw)
            if scene is not None and scene not in deduped:
                deduped.append(scene)
        progress.scenes_completed = deduped

    current = _as_int(document.get("currentScene"))
    if current is not None and current >= 1:
        progress.current_scene = current

    choices = document.get("choices")
    if isinstance(choices, Mapping):
        progress.choices = _parse_choices(choices)

    # A null completedAt never clears a completion already held in memory.
    completed_at = _as_int(document.get("completedAt"))
    if completed_at is not None:
        progress.completed_at = completed_at


def reconcile_progress(
    chapters: Mapping[int, ChapterProgress],
    achievements: AchievementLog,
    document: Any,
) -> None:
    if not isinstance(document, Mapping):
        return
    for chapter, progress in chapters.items():
        reconcile_chapter(progress, document.get(chapter_key(chapter)))

    unlocked = document.get(ACHIEVEMENTS_KEY)
    if isinstance(unlocked, list):
        ordered: List[str] = []
        for achievement_id in unlocked:
            if isinstance(achievement_id, str) and achievement_id not in ordered:
                ordered.append(achievement_id)
        achievements.unlocked = ordered


def reconcile_stats(stats: PlayerStats, document: Any) -> None:
    if not isinstance(document, Mapping):
        return
    for name, attr in STAT_FIELDS.items():
        value = _as_int(document.get(name))
        if value is not None:
            setattr(stats, attr, value)
    stats.clamp()
    stats.total_play_time = max(0, stats.total_play_time)
    stats.choices_made = max(0, stats.choices_made)
