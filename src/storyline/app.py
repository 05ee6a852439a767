"""Composition root for the progress engine.

Builds the event bus, world, backends, session hub, progress store and play
time system, and wires session changes into the store.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable

from esper import World

from storyline.config import StoryConfig
from storyline.constants import TICK_PERIOD
from storyline.events.bus import EVENT_TICK, EventBus
from storyline.persistence.backend import PersistenceBackend
from storyline.persistence.local_backend import LocalStorageBackend
from storyline.session.provider import SessionHub, SessionProvider, Unsubscribe
from storyline.systems.play_time_system import PlayTimeSystem
from storyline.systems.progress_store import ProgressStore
from storyline.world import create_world

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class StoryEngine:
    event_bus: EventBus
    world: World
    store: ProgressStore
    session: SessionProvider
    play_time: PlayTimeSystem
    unsubscribe_session: Unsubscribe

    async def start(self) -> None:
        """Load whatever the current session has stored."""
        await self.store.load()
        await self.store.flush()

    async def shutdown(self) -> None:
        self.play_time.shutdown()
        self.unsubscribe_session()
        await self.store.flush()
        logger.info("Story engine stopped")


def build_engine(
    config: StoryConfig | None = None,
    *,
    session: SessionProvider | None = None,
    local_backend: PersistenceBackend | None = None,
    remote_backend: PersistenceBackend | None = None,
    clock: Callable[[], float] = time.time,
    monotonic: Callable[[], float] = time.monotonic,
) -> StoryEngine:
    config = config or StoryConfig()
    event_bus = EventBus()
    world = create_world(config)
    store = ProgressStore(
        world,
        event_bus,
        local_backend or LocalStorageBackend(config.storage_dir),
        remote_backend=remote_backend,
        config=config,
        clock=clock,
        monotonic=monotonic,
    )
    session = session or SessionHub()
    unsubscribe = session.subscribe(store.on_session_change)
    play_time = PlayTimeSystem(event_bus, store, interval=config.play_time_interval)
    return StoryEngine(
        event_bus=event_bus,
        world=world,
        store=store,
        session=session,
        play_time=play_time,
        unsubscribe_session=unsubscribe,
    )


async def run_ticker(
    event_bus: EventBus,
    *,
    period: float = TICK_PERIOD,
    stop: asyncio.Event | None = None,
) -> None:
    """Emit ``tick`` events every ``period`` seconds until ``stop`` is set."""
    loop = asyncio.get_running_loop()
    last = loop.time()
    while stop is None or not stop.is_set():
        await asyncio.sleep(period)
        now = loop.time()
        event_bus.emit(EVENT_TICK, dt=now - last)
        last = now
