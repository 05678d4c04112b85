"""
Storage — document-store transports behind a single async interface.

Public surface
--------------
- :class:`StorageBackend` — abstract transport (equality query, add, atomic batch add).
- :class:`StoredRecord` — id + fields as returned by a backend.
- :class:`InMemoryBackend` — process-local store.
- :class:`FirestoreBackend` — Firestore ``AsyncClient`` backend.
- :class:`ChromaBackend` — Chroma used as a plain document store.
- :func:`get_storage_backend` — process-wide backend selected by settings.
"""

from __future__ import annotations

from functools import lru_cache

from voicedoc.config import settings
from voicedoc.storage.base import StorageBackend, StoredRecord
from voicedoc.storage.memory import InMemoryBackend

__all__ = [
    "ChromaBackend",
    "FirestoreBackend",
    "InMemoryBackend",
    "StorageBackend",
    "StoredRecord",
    "get_storage_backend",
]


@lru_cache(maxsize=1)
def get_storage_backend() -> StorageBackend:
    """Return the process-wide backend, created on first call.

    Components receive this instance by injection; it is never torn down.
    """
    kind = settings.storage_backend
    if kind == "firestore":
        from voicedoc.storage.firestore_store import FirestoreBackend

        return FirestoreBackend()
    if kind == "chroma":
        from voicedoc.storage.chroma_store import ChromaBackend

        return ChromaBackend()
    if kind == "memory":
        return InMemoryBackend(timeout=settings.storage_timeout_seconds)
    raise ValueError(f"Unsupported storage backend: {kind!r}")


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import vendor backends to avoid pulling in their SDKs at import time."""
    if name == "FirestoreBackend":
        from voicedoc.storage.firestore_store import FirestoreBackend

        return FirestoreBackend
    if name == "ChromaBackend":
        from voicedoc.storage.chroma_store import ChromaBackend

        return ChromaBackend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
