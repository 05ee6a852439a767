from dataclasses import dataclass


@dataclass(slots=True)
class PlayClock:
    """Monotonic reference point from which unaccounted play time accrues."""

    session_start: float = 0.0
