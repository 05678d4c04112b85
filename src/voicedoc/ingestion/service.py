"""Ingestion — dedup by content hash, register, embed, and batch-store chunks.

Flow for one upload::

    hash bytes ─► registry.find_by_hash
                   ├─ hit, chunks present ─► ALREADY_INGESTED (nothing written)
                   ├─ hit, no chunks ──────► embed + save_all ─► RESUMED
                   └─ miss ─► registry.insert ─► embed + save_all ─► INGESTED

The registry insert and the chunk batch are two separate writes.  A crash in
between leaves a registered document without chunks; the next upload of the
same bytes takes the RESUMED branch instead of trusting the registry hit.
Concurrent uploads of identical bytes are not serialised here.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from voicedoc.config import settings
from voicedoc.errors import IngestionError, StorageUnavailableError
from voicedoc.ingestion.chunker import ChunkDraft, chunk_documents
from voicedoc.ingestion.loader import loader_for
from voicedoc.retrieval.models import Chunk, ChunkMetadata, DocumentRecord

if TYPE_CHECKING:
    from voicedoc.ingestion.embedder import Embedder
    from voicedoc.retrieval.chunk_store import ChunkStore
    from voicedoc.retrieval.registry import DocumentRegistry

logger = logging.getLogger(__name__)


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest of the raw uploaded bytes."""
    return hashlib.sha256(data).hexdigest()


class IngestionStatus(str, Enum):
    INGESTED = "ingested"
    ALREADY_INGESTED = "already_ingested"
    RESUMED = "resumed"


class IngestionResult(BaseModel):
    status: IngestionStatus
    record: DocumentRecord
    chunk_count: int = 0


class IngestionService:
    """Writes one document into the registry and the chunk store.

    Parameters
    ----------
    registry:
        Dedup registry.
    chunk_store:
        Destination for embedded chunks.
    embedder:
        Embedding provider; called in a worker thread since most providers
        are synchronous.
    """

    def __init__(self, registry: DocumentRegistry, chunk_store: ChunkStore, embedder: Embedder) -> None:
        self._registry = registry
        self._chunk_store = chunk_store
        self._embedder = embedder

    async def ingest(
        self,
        data: bytes,
        filename: str,
        persona: str,
        drafts: list[ChunkDraft],
        summary: str | None = None,
    ) -> IngestionResult:
        """Ingest pre-chunked content.

        Raises
        ------
        IngestionError
            If any storage write or lookup, or the embedder, fails; the document must then be
            treated as not ingested.
        """
        digest = content_hash(data)
        existing = await self._check_existing(digest, filename)
        if existing is not None and existing.status is IngestionStatus.ALREADY_INGESTED:
            return existing
        return await self._write(digest, filename, persona, summary, drafts, existing)

    async def ingest_file(
        self,
        data: bytes,
        filename: str,
        persona: str,
        summary: str | None = None,
        *,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
    ) -> IngestionResult:
        """Extract, chunk and ingest an uploaded file.

        The dedup check runs before extraction so identical bytes are never
        parsed twice.
        """
        digest = content_hash(data)
        existing = await self._check_existing(digest, filename)
        if existing is not None and existing.status is IngestionStatus.ALREADY_INGESTED:
            return existing

        pages = await asyncio.to_thread(loader_for(filename), data, filename)
        drafts = chunk_documents(pages, chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        logger.info("Extracted %d pages, %d chunks from %r", len(pages), len(drafts), filename)
        return await self._write(digest, filename, persona, summary, drafts, existing)

    # -- internals ------------------------------------------------------------

    async def _check_existing(self, digest: str, filename: str) -> IngestionResult | None:
        """Classify a registry hit as complete or resumable; ``None`` on a miss."""
        try:
            record = await self._registry.find_by_hash(digest)
            if record is None:
                return None
            if await self._chunk_store.has_chunks(digest, record.filename):
                logger.info("Document %r already ingested as %r; skipping", filename, record.filename)
                return IngestionResult(status=IngestionStatus.ALREADY_INGESTED, record=record)
        except StorageUnavailableError as exc:
            raise IngestionError(filename, digest, str(exc)) from exc

        logger.warning("Document %r is registered but has no chunks; resuming chunk write", record.filename)
        return IngestionResult(status=IngestionStatus.RESUMED, record=record)

    async def _write(
        self,
        digest: str,
        filename: str,
        persona: str,
        summary: str | None,
        drafts: list[ChunkDraft],
        resumed: IngestionResult | None,
    ) -> IngestionResult:
        try:
            if resumed is None:
                record = await self._registry.insert(
                    DocumentRecord(content_hash=digest, filename=filename, persona=persona, summary=summary)
                )
                status = IngestionStatus.INGESTED
            else:
                record = resumed.record
                status = IngestionStatus.RESUMED

            chunks = await self._embed(record, drafts)
            await self._chunk_store.save_all(chunks)
        except StorageUnavailableError as exc:
            raise IngestionError(filename, digest, str(exc)) from exc

        logger.info("Ingestion of %r finished: %s (%d chunks)", record.filename, status.value, len(chunks))
        return IngestionResult(status=status, record=record, chunk_count=len(chunks))

    async def _embed(self, record: DocumentRecord, drafts: list[ChunkDraft]) -> list[Chunk]:
        texts = [d.text for d in drafts]
        try:
            embeddings = await asyncio.to_thread(self._embedder.embed_many, texts)
        except Exception as exc:
            raise IngestionError(record.filename, record.content_hash, f"embedding failed: {exc}") from exc
        if len(embeddings) != len(drafts):
            raise IngestionError(
                record.filename,
                record.content_hash,
                f"Embedder returned {len(embeddings)} vectors for {len(drafts)} chunks",
            )
        return [
            Chunk(
                text=draft.text,
                embedding=list(vector),
                metadata=ChunkMetadata(
                    filename=record.filename,
                    persona=record.persona,
                    page_number=draft.page_number,
                    content_hash=record.content_hash,
                ),
            )
            for draft, vector in zip(drafts, embeddings)
        ]
