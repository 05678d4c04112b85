"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib

import pytest

from voicedoc.retrieval import Chunk, ChunkMetadata, ChunkStore, DocumentRegistry, SimilaritySearchEngine
from voicedoc.storage import InMemoryBackend


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fakes ───────────────────────────────────────────────────────────────


class FakeEmbedder:
    """Deterministic embedder: a 4-d bag of character classes."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    @staticmethod
    def _vector(text: str) -> list[float]:
        lower = text.lower()
        return [
            float(sum(c in "aeiou" for c in lower)),
            float(sum(c.isalpha() and c not in "aeiou" for c in lower)),
            float(sum(c.isdigit() for c in lower)),
            float(len(lower.split())),
        ]

    def embed(self, text: str) -> list[float]:
        return self._vector(text)

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]


def make_chunk(text: str, embedding: list[float], filename: str, page: int | None = None) -> Chunk:
    return Chunk(
        text=text,
        embedding=embedding,
        metadata=ChunkMetadata(
            filename=filename,
            persona="legal",
            page_number=page,
            content_hash=hashlib.sha256(filename.encode()).hexdigest(),
        ),
    )


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture()
def registry(backend: InMemoryBackend) -> DocumentRegistry:
    return DocumentRegistry(backend)


@pytest.fixture()
def chunk_store(backend: InMemoryBackend) -> ChunkStore:
    return ChunkStore(backend)


@pytest.fixture()
def engine(chunk_store: ChunkStore) -> SimilaritySearchEngine:
    return SimilaritySearchEngine(chunk_store)


@pytest.fixture()
def embedder() -> FakeEmbedder:
    return FakeEmbedder()
