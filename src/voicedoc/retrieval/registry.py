"""Document registry — one write-once record per distinct uploaded content."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from voicedoc.config import settings
from voicedoc.retrieval.models import DocumentRecord, MetadataFilter

if TYPE_CHECKING:
    from voicedoc.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class DocumentRegistry:
    """Dedup lookup and metadata store keyed by content hash.

    There is deliberately no update or delete: entries are write-once.
    Storage faults propagate as :class:`~voicedoc.errors.StorageUnavailableError`.

    Parameters
    ----------
    backend:
        Storage transport shared with the chunk store.
    collection:
        Name of the documents collection.
    """

    def __init__(self, backend: StorageBackend, *, collection: str = settings.documents_collection) -> None:
        self._backend = backend
        self.collection = collection

    async def find_by_hash(self, content_hash: str) -> DocumentRecord | None:
        """Return the record for *content_hash*, or ``None``.

        If duplicates exist, the first one returned by the store wins.
        """
        hits = await self._backend.query(
            self.collection, [MetadataFilter.equals("hash", content_hash)], limit=1
        )
        if not hits:
            return None
        return DocumentRecord.model_validate(hits[0].data)

    async def insert(self, record: DocumentRecord) -> DocumentRecord:
        """Persist *record* with a fresh ``created_at``; the caller checks existence first."""
        stored = record.model_copy(update={"created_at": datetime.now(timezone.utc)})
        await self._backend.add(self.collection, stored.to_storage())
        logger.info("Registered document %r (hash=%s)", stored.filename, stored.content_hash[:12])
        return stored
