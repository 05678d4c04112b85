"""Chunk store — append-only storage of document fragments and their embeddings."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from voicedoc.config import settings
from voicedoc.retrieval.models import Chunk, MetadataFilter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from voicedoc.storage.base import StorageBackend

logger = logging.getLogger(__name__)

FILENAME_FIELD = "metadata.filename"
CONTENT_HASH_FIELD = "metadata.contentHash"


class ChunkStore:
    """Batch writes and filename-scoped reads over the chunks collection.

    Parameters
    ----------
    backend:
        Storage transport shared with the registry.
    collection:
        Name of the chunks collection.
    """

    def __init__(self, backend: StorageBackend, *, collection: str = settings.chunks_collection) -> None:
        self._backend = backend
        self.collection = collection

    async def save_all(self, chunks: Sequence[Chunk]) -> list[str]:
        """Write every chunk of one document in a single atomic batch.

        Returns the store-assigned ids in input order.  On failure nothing
        from this batch is visible and the ingestion is not complete.
        """
        if not chunks:
            return []
        now = datetime.now(timezone.utc)
        payload = [c.model_copy(update={"created_at": now}).to_storage() for c in chunks]
        ids = await self._backend.add_batch(self.collection, payload)
        logger.info("Saved %d chunks for %r", len(ids), chunks[0].metadata.filename)
        return ids

    async def fetch_by_filename(self, filename: str | None) -> list[Chunk]:
        """Return the chunks of *filename*, or the whole corpus when it is ``None``.

        The filename predicate is pushed down to the store; results are never
        post-filtered here.
        """
        if filename:
            filters = [MetadataFilter.equals(FILENAME_FIELD, filename)]
            logger.info("Fetching chunks filtered by filename=%r", filename)
        else:
            filters = []
            logger.warning(
                "No filename provided: scanning ALL chunks in %r (cross-document results possible)",
                self.collection,
            )

        records = await self._backend.query(self.collection, filters)
        chunks = [Chunk.from_storage(r.id, r.data) for r in records]
        logger.info("Retrieved %d chunks from %r", len(chunks), self.collection)
        return chunks

    async def has_chunks(self, content_hash: str, filename: str | None = None) -> bool:
        """Whether any chunk of the document *content_hash* is stored.

        Chunks written before ``contentHash`` was recorded carry only the
        filename, so *filename* (the registered record's) is checked as well.
        """
        records = await self._backend.query(
            self.collection, [MetadataFilter.equals(CONTENT_HASH_FIELD, content_hash)], limit=1
        )
        if not records and filename:
            records = await self._backend.query(
                self.collection, [MetadataFilter.equals(FILENAME_FIELD, filename)], limit=1
            )
        return bool(records)
