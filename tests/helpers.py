from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional, Tuple

from google.api_core.exceptions import NotFound
from google.cloud import firestore

from storyline.config import StoryConfig
from storyline.events.bus import EventBus
from storyline.persistence.backend import Document
from storyline.systems.progress_store import ProgressStore
from storyline.world import create_world


class FakeClock:
    """Callable clock whose value tests move by hand."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryBackend:
    """In-memory persistence backend recording every call."""

    def __init__(
        self,
        progress: Optional[Document] = None,
        stats: Optional[Document] = None,
    ) -> None:
        self.progress: Dict[Optional[str], Document] = {}
        self.stats: Dict[Optional[str], Document] = {}
        self.calls: List[Tuple[str, Optional[str]]] = []
        self.completed_chapters: List[Tuple[str, str]] = []
        if progress is not None:
            self.progress[None] = progress
        if stats is not None:
            self.stats[None] = stats

    async def get_progress_document(self, account_id):
        self.calls.append(("get_progress", account_id))
        document = self.progress.get(account_id)
        return copy.deepcopy(document) if document is not None else None

    async def get_stats_document(self, account_id):
        self.calls.append(("get_stats", account_id))
        document = self.stats.get(account_id)
        return copy.deepcopy(document) if document is not None else None

    async def set_progress_document(self, account_id, document):
        self.calls.append(("set_progress", account_id))
        self.progress[account_id] = copy.deepcopy(document)

    async def set_stats_document(self, account_id, document):
        self.calls.append(("set_stats", account_id))
        self.stats[account_id] = copy.deepcopy(document)

    async def mark_chapter_complete(self, account_id, chapter_key):
        self.calls.append(("mark_chapter_complete", account_id))
        self.completed_chapters.append((account_id, chapter_key))

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]


class FailingBackend(MemoryBackend):
    """Backend whose every operation raises an I/O error."""

    async def get_progress_document(self, account_id):
        raise OSError("backend unavailable")

    async def get_stats_document(self, account_id):
        raise OSError("backend unavailable")

    async def set_progress_document(self, account_id, document):
        raise OSError("backend unavailable")

    async def set_stats_document(self, account_id, document):
        raise OSError("backend unavailable")

    async def mark_chapter_complete(self, account_id, chapter_key):
        raise OSError("backend unavailable")


def capture(bus: EventBus, name: str) -> List[Dict[str, Any]]:
    """Subscribe to ``name`` and collect every payload emitted."""
    received: List[Dict[str, Any]] = []
    bus.subscribe(name, lambda sender, **payload: received.append(payload))
    return received


def make_store(
    local: Optional[MemoryBackend] = None,
    remote: Optional[MemoryBackend] = None,
    *,
    config: Optional[StoryConfig] = None,
    clock: Optional[FakeClock] = None,
    monotonic: Optional[FakeClock] = None,
) -> Tuple[ProgressStore, EventBus]:
    config = config or StoryConfig()
    bus = EventBus()
    store = ProgressStore(
        create_world(config),
        bus,
        local if local is not None else MemoryBackend(),
        remote_backend=remote,
        config=config,
        clock=clock or FakeClock(1_700_000_000.0),
        monotonic=monotonic or FakeClock(),
    )
    return store, bus


# ---------------------------------------------------------------------------
# Firestore fakes
# ---------------------------------------------------------------------------

def _apply_value(current: Any, value: Any) -> Any:
    if isinstance(value, firestore.ArrayUnion):
        merged = list(current) if isinstance(current, list) else []
        for item in value.values:
            if item not in merged:
                merged.append(item)
        return merged
    if isinstance(value, firestore.Increment):
        base = current if isinstance(current, (int, float)) else 0
        return base + value.value
    if isinstance(value, dict):
        base = current if isinstance(current, dict) else {}
        merged = dict(base)
        for key, nested in value.items():
            merged[key] = _apply_value(base.get(key), nested)
        return merged
    return copy.deepcopy(value)


class FakeSnapshot:
    def __init__(self, data: Optional[Dict[str, Any]]) -> None:
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data)


class FakeDocumentReference:
    def __init__(self, store: Dict[str, Dict[str, Any]], path: str) -> None:
        self._store = store
        self.path = path

    async def get(self) -> FakeSnapshot:
        return FakeSnapshot(self._store.get(self.path))

    async def update(self, updates: Dict[str, Any]) -> None:
        if self.path not in self._store:
            raise NotFound(f"No document to update: {self.path}")
        data = self._store[self.path]
        for field_path, value in updates.items():
            *parents, leaf = field_path.split(".")
            target = data
            for part in parents:
                target = target.setdefault(part, {})
            # Plain values replace; transforms apply to the current value.
            if isinstance(value, (firestore.ArrayUnion, firestore.Increment)):
                target[leaf] = _apply_value(target.get(leaf), value)
            else:
                target[leaf] = copy.deepcopy(value)

    async def set(self, data: Dict[str, Any], merge: bool = False) -> None:
        if merge:
            self._store[self.path] = _apply_value(self._store.get(self.path), data)
        else:
            self._store[self.path] = _apply_value(None, data)


class FakeCollection:
    def __init__(self, store: Dict[str, Dict[str, Any]], name: str) -> None:
        self._store = store
        self._name = name

    def document(self, document_id: str) -> FakeDocumentReference:
        return FakeDocumentReference(self._store, f"{self._name}/{document_id}")


class FakeFirestoreClient:
    """Minimal stand-in for ``firestore.AsyncClient`` backed by a dict of paths."""

    def __init__(self) -> None:
        self.documents: Dict[str, Dict[str, Any]] = {}

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self.documents, name)
