from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from storyline.constants import LOCAL_PROGRESS_FILE, LOCAL_STATS_FILE
from storyline.persistence.backend import Document

logger = logging.getLogger(__name__)


class LocalStorageBackend:
    """Guest persistence: each document is a JSON file in ``storage_dir``.

    The account id is accepted for interface parity and ignored; there is a
    single local slot per device.
    """

    def __init__(
        self,
        storage_dir: Path,
        *,
        progress_file: str = LOCAL_PROGRESS_FILE,
        stats_file: str = LOCAL_STATS_FILE,
    ) -> None:
        self._storage_dir = Path(storage_dir)
        self._progress_path = self._storage_dir / progress_file
        self._stats_path = self._storage_dir / stats_file

    @property
    def progress_path(self) -> Path:
        return self._progress_path

    @property
    def stats_path(self) -> Path:
        return self._stats_path

    async def get_progress_document(self, account_id: Optional[str]) -> Optional[Document]:
        return self._read(self._progress_path)

    async def get_stats_document(self, account_id: Optional[str]) -> Optional[Document]:
        return self._read(self._stats_path)

    async def set_progress_document(self, account_id: Optional[str], document: Document) -> None:
        self._write(self._progress_path, document)

    async def set_stats_document(self, account_id: Optional[str], document: Document) -> None:
        self._write(self._stats_path, document)

    async def mark_chapter_complete(self, account_id: str, chapter_key: str) -> None:
        # completedAt inside the progress document already records this locally.
        return None

    def _read(self, path: Path) -> Optional[Document]:
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable local document %s", path)
            return None
        if not isinstance(payload, dict):
            logger.warning("Ignoring local document %s: expected an object", path)
            return None
        return payload

    def _write(self, path: Path, document: Document) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=2)
