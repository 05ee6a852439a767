"""Storage port shared by the local and remote progress backends."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

Document = Dict[str, Any]


class PersistenceBackend(Protocol):
    """Reads and writes the progress and stats documents of one player.

    ``account_id`` is ``None`` for guest play. Getters return ``None`` when the
    document does not exist; setters raise on I/O failure.
    """

    async def get_progress_document(self, account_id: Optional[str]) -> Optional[Document]:
        ...

    async def get_stats_document(self, account_id: Optional[str]) -> Optional[Document]:
        ...

    async def set_progress_document(self, account_id: Optional[str], document: Document) -> None:
        ...

    async def set_stats_document(self, account_id: Optional[str], document: Document) -> None:
        ...

    async def mark_chapter_complete(self, account_id: str, chapter_key: str) -> None:
        ...
