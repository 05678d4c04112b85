"""Embedding provider interface and the default sentence-transformers adapter."""

from __future__ import annotations

from functools import lru_cache
from typing import Protocol, runtime_checkable

from voicedoc.config import settings


@runtime_checkable
class Embedder(Protocol):
    """Maps text to fixed-length vectors.  Dimensionality is the provider's concern."""

    def embed(self, text: str) -> list[float]: ...

    def embed_many(self, texts: list[str]) -> list[list[float]]: ...


class HuggingFaceEmbedder:
    """:class:`Embedder` backed by LangChain's ``HuggingFaceEmbeddings``.

    The model is loaded on first use.
    """

    def __init__(self, model_name: str = settings.embedding_model) -> None:
        self.model_name = model_name
        self._model = None

    @property
    def model(self):  # noqa: ANN201
        if self._model is None:
            from langchain_huggingface import HuggingFaceEmbeddings

            self._model = HuggingFaceEmbeddings(model_name=self.model_name)
        return self._model

    def embed(self, text: str) -> list[float]:
        return self.model.embed_query(text)

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return self.model.embed_documents(texts)


@lru_cache(maxsize=1)
def get_embedder() -> Embedder:
    """Return the configured embedding provider (one per process)."""
    return HuggingFaceEmbedder()
