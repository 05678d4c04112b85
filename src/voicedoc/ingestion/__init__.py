"""
Ingestion — content-hash deduplication, extraction, chunking, and embedding.

Raw uploads are hashed, checked against the document registry, and — when
new — split into chunks, embedded, and written to the chunk store in one
batch.
"""

from voicedoc.ingestion.service import IngestionResult, IngestionService, IngestionStatus, content_hash

__all__ = ["IngestionResult", "IngestionService", "IngestionStatus", "content_hash"]
