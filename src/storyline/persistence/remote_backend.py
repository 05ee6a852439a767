from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from google.api_core.exceptions import NotFound
from google.cloud import firestore

from storyline.constants import (
    REMOTE_PROGRESS_FIELD,
    REMOTE_STATS_FIELD,
    REMOTE_USERS_COLLECTION,
)
from storyline.persistence.backend import Document

logger = logging.getLogger(__name__)


class FirestoreBackend:
    """Account-scoped persistence in Firestore.

    Each account owns ``users/{account_id}``; the progress and stats documents
    are the ``progress`` and ``stats`` map fields of that user document.
    Writes address every top-level key through a field path so sibling keys
    maintained elsewhere (``progress.completed``, ``stats.chaptersCompleted``)
    survive a save. A chapter is counted in ``stats.chaptersCompleted`` once.
    """

    def __init__(
        self,
        client: firestore.AsyncClient,
        *,
        collection: str = REMOTE_USERS_COLLECTION,
    ) -> None:
        self._client = client
        self._collection = collection

    def _document(self, account_id: Optional[str]):
        if not account_id:
            raise ValueError("Remote persistence requires an account id")
        return self._client.collection(self._collection).document(account_id)

    async def get_progress_document(self, account_id: Optional[str]) -> Optional[Document]:
        return await self._get_field(account_id, REMOTE_PROGRESS_FIELD)

    async def get_stats_document(self, account_id: Optional[str]) -> Optional[Document]:
        return await self._get_field(account_id, REMOTE_STATS_FIELD)

    async def set_progress_document(self, account_id: Optional[str], document: Document) -> None:
        await self._write_field(account_id, REMOTE_PROGRESS_FIELD, document)

    async def set_stats_document(self, account_id: Optional[str], document: Document) -> None:
        await self._write_field(account_id, REMOTE_STATS_FIELD, document)

    async def mark_chapter_complete(self, account_id: str, chapter_key: str) -> None:
        progress = await self._get_field(account_id, REMOTE_PROGRESS_FIELD) or {}
        completed = progress.get("completed")
        if isinstance(completed, list) and chapter_key in completed:
            logger.debug("Chapter %s already recorded for account %s", chapter_key, account_id)
            return
        await self._update(
            account_id,
            {
                f"{REMOTE_PROGRESS_FIELD}.completed": firestore.ArrayUnion([chapter_key]),
                f"{REMOTE_STATS_FIELD}.chaptersCompleted": firestore.Increment(1),
            },
            {
                REMOTE_PROGRESS_FIELD: {"completed": firestore.ArrayUnion([chapter_key])},
                REMOTE_STATS_FIELD: {"chaptersCompleted": firestore.Increment(1)},
            },
        )

    async def _get_field(self, account_id: Optional[str], field: str) -> Optional[Document]:
        snapshot = await self._document(account_id).get()
        if not snapshot.exists:
            return None
        data = snapshot.to_dict() or {}
        value = data.get(field)
        if not isinstance(value, dict):
            return None
        return value

    async def _write_field(self, account_id: Optional[str], field: str, document: Document) -> None:
        updates = {f"{field}.{key}": value for key, value in document.items()}
        await self._update(account_id, updates, {field: dict(document)})

    async def _update(
        self,
        account_id: Optional[str],
        updates: Dict[str, Any],
        fallback: Dict[str, Any],
    ) -> None:
        reference = self._document(account_id)
        try:
            await reference.update(updates)
        except NotFound:
            logger.info("Creating user document for account %s", account_id)
            await reference.set(fallback, merge=True)
