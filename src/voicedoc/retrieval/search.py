"""Similarity search engine — scoped fetch, in-process scoring, top-K.

Usage::

    from voicedoc.retrieval import ChunkStore, SimilaritySearchEngine
    from voicedoc.storage import get_storage_backend

    engine = SimilaritySearchEngine(ChunkStore(get_storage_backend()))
    chunks = await engine.search(query_embedding, top_k=3, filename="contract.pdf")

The engine never raises past its boundary: a storage failure degrades to an
empty result list and an ERROR log entry, so the conversational flow built on
top of it answers "no relevant context found" instead of failing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from voicedoc.config import settings
from voicedoc.errors import StorageUnavailableError
from voicedoc.retrieval.models import Chunk, ScoredChunk
from voicedoc.retrieval.similarity import ExactScanRanker, RankingBackend

if TYPE_CHECKING:
    from voicedoc.retrieval.chunk_store import ChunkStore

logger = logging.getLogger(__name__)


class SimilaritySearchEngine:
    """Stateless request/response retrieval over a :class:`ChunkStore`.

    Parameters
    ----------
    chunk_store:
        Source of candidate chunks.
    ranker:
        Scoring strategy; defaults to :class:`ExactScanRanker`.
    """

    def __init__(self, chunk_store: ChunkStore, *, ranker: RankingBackend | None = None) -> None:
        self._chunk_store = chunk_store
        self._ranker = ranker or ExactScanRanker()

    async def search(
        self,
        query_embedding: Sequence[float],
        top_k: int = settings.default_top_k,
        filename: str | None = None,
    ) -> list[Chunk]:
        """Return up to *top_k* chunks of *filename*, most relevant first."""
        return [hit.chunk for hit in await self.search_scored(query_embedding, top_k, filename)]

    async def search_scored(
        self,
        query_embedding: Sequence[float],
        top_k: int = settings.default_top_k,
        filename: str | None = None,
    ) -> list[ScoredChunk]:
        """Same as :meth:`search` but keeps the relevance score of each hit."""
        try:
            candidates = await self._chunk_store.fetch_by_filename(filename)
            if candidates:
                logger.debug("First candidate metadata: %s", candidates[0].metadata.model_dump())
            logger.info("Scoring %d candidate chunks (top_k=%d)", len(candidates), top_k)
            return self._ranker.rank(query_embedding, candidates, top_k)
        except StorageUnavailableError:
            logger.error("Similarity search failed, returning no results", exc_info=True)
            return []
        except Exception:
            logger.exception("Similarity search failed unexpectedly, returning no results")
            return []
