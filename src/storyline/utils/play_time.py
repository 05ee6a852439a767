from __future__ import annotations

import math


def format_play_time(minutes: int) -> str:
    hours, mins = divmod(max(0, int(minutes)), 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins} mins"


def whole_minutes(elapsed_seconds: float) -> int:
    if elapsed_seconds <= 0:
        return 0
    return int(elapsed_seconds // 60)


def round_percentage(completed: int, total: int) -> int:
    """Percentage rounded half up (3 of 8 -> 38, 5 of 8 -> 63)."""
    if total <= 0:
        return 0
    return int(math.floor(completed / total * 100 + 0.5))
