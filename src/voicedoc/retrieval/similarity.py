"""Vector scoring and ranking backends.

:class:`ExactScanRanker` scores every candidate in process.  That is fine for
per-document corpora of a few hundred chunks; an approximate
nearest-neighbour ranker can be dropped in behind :class:`RankingBackend`
for larger scopes without changing the search contract.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence

import numpy as np

from voicedoc.errors import MalformedVectorError
from voicedoc.retrieval.models import Chunk, ScoredChunk

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between *a* and *b*.

    Returns ``0.0`` when either vector has zero norm.

    Raises
    ------
    MalformedVectorError
        If either vector is empty or their lengths differ.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.ndim != 1 or vb.ndim != 1 or va.size == 0 or vb.size == 0:
        raise MalformedVectorError(f"expected non-empty 1-D vectors, got shapes {va.shape} and {vb.shape}")
    if va.shape != vb.shape:
        raise MalformedVectorError(f"dimension mismatch: {va.size} != {vb.size}")

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    score = float(np.dot(va, vb)) / (norm_a * norm_b)
    if not math.isfinite(score):
        raise MalformedVectorError("non-finite similarity (vector contains NaN or inf)")
    return score


class RankingBackend(ABC):
    """Orders candidate chunks by relevance to a query embedding."""

    @abstractmethod
    def rank(self, query_embedding: Sequence[float], candidates: Sequence[Chunk], top_k: int) -> list[ScoredChunk]:
        """Return at most *top_k* candidates, best first."""
        ...


class ExactScanRanker(RankingBackend):
    """Brute-force cosine scoring over the full candidate set.

    Ties keep the order the candidates were fetched in, so repeated calls on
    the same input return the same ordering.

    Candidates whose embedding cannot be compared with the query (wrong
    dimensionality, empty, NaN) are left out of the result, so a malformed
    query yields no hits at all.
    """

    def rank(self, query_embedding: Sequence[float], candidates: Sequence[Chunk], top_k: int) -> list[ScoredChunk]:
        if top_k <= 0 or not candidates:
            return []

        scored: list[ScoredChunk] = []
        malformed = 0
        for chunk in candidates:
            try:
                score = cosine_similarity(query_embedding, chunk.embedding)
            except MalformedVectorError as exc:
                malformed += 1
                logger.debug("Chunk %s skipped: %s", chunk.id, exc)
                continue
            scored.append(ScoredChunk(chunk=chunk, score=score))

        if malformed:
            logger.warning(
                "Skipped %d of %d candidates with malformed embeddings relative to the query (dim=%d)",
                malformed,
                len(candidates),
                len(query_embedding),
            )

        # sorted() is stable, reverse=True included.
        scored = sorted(scored, key=lambda s: s.score, reverse=True)
        return scored[:top_k]
