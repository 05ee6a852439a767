from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # weak=False keeps bound methods and lambdas alive for the lifetime of the bus.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                              # payload: dt=float (seconds)
EVENT_PLAY_TIME_UPDATED = "play_time_updated"    # payload: total_play_time=int (minutes)


# ============================================================================
# SESSION
# ============================================================================
EVENT_SESSION_CHANGED = "session_changed"        # payload: identity=SessionIdentity|None


# ============================================================================
# PROGRESS & STORY
# ============================================================================
EVENT_PROGRESS_LOADED = "progress_loaded"        # payload: progress=dict, stats=dict
EVENT_PROGRESS_RESET = "progress_reset"          # payload: None
EVENT_SCENE_COMPLETED = "scene_completed"        # payload: chapter=int, scene_number=int
EVENT_CHOICE_MADE = "choice_made"                # payload: chapter=int, scene_number=int, choice_index=int
EVENT_CHAPTER_COMPLETED = "chapter_completed"    # payload: chapter=int, completed_at=int (epoch ms)


# ============================================================================
# STATS & ACHIEVEMENTS
# ============================================================================
EVENT_STATS_UPDATED = "stats_updated"                # payload: stats=dict
EVENT_ACHIEVEMENT_UNLOCKED = "achievement_unlocked"  # payload: achievement_id=str, title=str, description=str


# ============================================================================
# UI NOTIFICATIONS
# ============================================================================
EVENT_SHOW_TOAST = "show_toast"    # payload: toast_type=str, title=str, message=str, duration=int (ms)
