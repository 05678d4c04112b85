"""
Retrieval — document registry, chunk store, and similarity search.

Public surface
--------------
- :class:`DocumentRegistry` — content-hash dedup lookup, write-once.
- :class:`ChunkStore` — atomic batch writes, filename-scoped reads.
- :class:`SimilaritySearchEngine` — scoped fetch + cosine ranking, top-K.
- :class:`RankingBackend`, :class:`ExactScanRanker` — pluggable ranking.
- :func:`cosine_similarity` — zero-norm-safe vector scoring.
- :class:`DocumentRecord`, :class:`Chunk`, :class:`ChunkMetadata`,
  :class:`ScoredChunk`, :class:`MetadataFilter` — data models.
"""

from voicedoc.retrieval.chunk_store import ChunkStore
from voicedoc.retrieval.models import Chunk, ChunkMetadata, DocumentRecord, MetadataFilter, ScoredChunk
from voicedoc.retrieval.registry import DocumentRegistry
from voicedoc.retrieval.search import SimilaritySearchEngine
from voicedoc.retrieval.similarity import ExactScanRanker, RankingBackend, cosine_similarity

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "ChunkStore",
    "DocumentRecord",
    "DocumentRegistry",
    "ExactScanRanker",
    "MetadataFilter",
    "RankingBackend",
    "ScoredChunk",
    "SimilaritySearchEngine",
    "cosine_similarity",
]
