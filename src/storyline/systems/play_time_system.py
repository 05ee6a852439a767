from __future__ import annotations

from typing import Any

from storyline.constants import PLAY_TIME_INTERVAL
from storyline.events.bus import EVENT_TICK, EventBus
from storyline.systems.progress_store import ProgressStore


class PlayTimeSystem:
    """Credits play time to the store once per interval of ticked time.

    ``shutdown`` performs the final accrual when the session ends and stops
    listening for ticks.
    """

    def __init__(
        self,
        event_bus: EventBus,
        store: ProgressStore,
        *,
        interval: float = PLAY_TIME_INTERVAL,
    ) -> None:
        self.event_bus = event_bus
        self.store = store
        self.interval = interval
        self._elapsed = 0.0
        self._active = True
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)

    @property
    def active(self) -> bool:
        return self._active

    def on_tick(self, sender: Any, **payload: Any) -> None:
        if not self._active:
            return
        try:
            dt = float(payload.get("dt", 0.0))
        except (TypeError, ValueError):
            return
        if dt <= 0:
            return
        self._elapsed += dt
        if self._elapsed >= self.interval:
            self._elapsed = 0.0
            self.store.update_play_time()

    def shutdown(self) -> None:
        if not self._active:
            return
        self._active = False
        self.event_bus.unsubscribe(EVENT_TICK, self.on_tick)
        self.store.update_play_time()
