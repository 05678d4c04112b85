"""Chroma implementation of the storage abstraction.

Chroma is used here purely as a document store: records are written with
``collection.add`` and read back with ``collection.get(where=...)``.  No
``collection.query`` (server-side nearest-neighbour search) is ever issued;
ranking happens in :mod:`voicedoc.retrieval.search`.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any
from uuid import uuid4

import chromadb
import httpx
from chromadb.errors import ChromaError

from voicedoc.config import settings
from voicedoc.retrieval.models import MetadataFilter
from voicedoc.storage.base import StorageBackend, StoredRecord

logger = logging.getLogger(__name__)

# Nested field paths are flattened into Chroma's flat metadata with this separator.
_SEP = "__"
# Registry rows carry no embedding; Chroma still requires one per record.
_PLACEHOLDER_EMBEDDING = [1.0]

_OP_MAP = {"eq": "$eq"}


def _build_chroma_where(filters: list[MetadataFilter]) -> dict[str, Any] | None:
    """Convert a list of :class:`MetadataFilter` to Chroma ``where`` syntax."""
    if not filters:
        return None

    clauses: list[dict[str, Any]] = []
    for f in filters:
        chroma_op = _OP_MAP.get(f.operator)
        if chroma_op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append({f.field.replace(".", _SEP): {chroma_op: f.value}})

    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested dicts; drop ``None`` and stringify datetimes."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{_SEP}{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(_flatten(value, name))
        elif isinstance(value, datetime):
            flat[name] = value.isoformat()
        elif value is not None:
            flat[name] = value
    return flat


def _unflatten(flat: dict[str, Any]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for key, value in flat.items():
        parts = key.split(_SEP)
        node = data
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value
    return data


class ChromaBackend(StorageBackend):
    """Chroma-backed document store.

    Parameters
    ----------
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built client (tests pass ``chromadb.EphemeralClient()`` or a mock).
    """

    transport_errors = (ChromaError, httpx.HTTPError, ConnectionError, OSError)

    def __init__(
        self,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        timeout: float | None = settings.storage_timeout_seconds,
        client: Any | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self._host = host
        self._port = port
        self._client = client
        self._collections: dict[str, Any] = {}

    # -- sync helpers (run in a worker thread) -----------------------------

    def _get_client(self) -> Any:
        if self._client is None:
            logger.info("Opening Chroma client at %s:%d", self._host, self._port)
            try:
                self._client = chromadb.HttpClient(host=self._host, port=self._port)
            except ValueError as exc:
                # HttpClient validates the tenant eagerly and reports an
                # unreachable server as ValueError.
                raise ConnectionError(str(exc)) from exc
        return self._client

    def _collection(self, name: str) -> Any:
        if name not in self._collections:
            self._collections[name] = self._get_client().get_or_create_collection(
                name, embedding_function=None
            )
        return self._collections[name]

    def _get_sync(self, collection: str, filters: list[MetadataFilter], limit: int | None) -> list[StoredRecord]:
        result = self._collection(collection).get(
            where=_build_chroma_where(filters),
            limit=limit,
            include=["documents", "metadatas", "embeddings"],
        )
        ids = result.get("ids") or []
        documents = result.get("documents")
        metadatas = result.get("metadatas")
        embeddings = result.get("embeddings")

        records: list[StoredRecord] = []
        for i, record_id in enumerate(ids):
            data = _unflatten(dict(metadatas[i] or {})) if metadatas is not None else {}
            if data.pop("_has_embedding", False) and embeddings is not None:
                data["embedding"] = [float(x) for x in embeddings[i]]
            if data.pop("_has_text", False) and documents is not None:
                data["text"] = documents[i] or ""
            records.append(StoredRecord(record_id, data))
        return records

    def _add_sync(self, collection: str, items: list[dict[str, Any]]) -> list[str]:
        ids: list[str] = []
        embeddings: list[list[float]] = []
        documents: list[str] = []
        metadatas: list[dict[str, Any]] = []

        for item in items:
            item = dict(item)
            text = item.pop("text", None)
            embedding = item.pop("embedding", None)
            meta = _flatten(item)
            meta["_has_text"] = text is not None
            meta["_has_embedding"] = embedding is not None

            ids.append(uuid4().hex)
            documents.append(text or "")
            embeddings.append(list(embedding) if embedding is not None else _PLACEHOLDER_EMBEDDING)
            metadatas.append(meta)

        # One add call is one write transaction on the server.
        self._collection(collection).add(
            ids=ids,
            embeddings=embeddings,
            documents=documents,
            metadatas=metadatas,
        )
        return ids

    # -- StorageBackend overrides ---------------------------------------------

    async def _query(
        self, collection: str, filters: list[MetadataFilter], limit: int | None
    ) -> list[StoredRecord]:
        return await asyncio.to_thread(self._get_sync, collection, filters, limit)

    async def _add(self, collection: str, data: dict[str, Any]) -> str:
        ids = await asyncio.to_thread(self._add_sync, collection, [data])
        return ids[0]

    async def _add_batch(self, collection: str, items: list[dict[str, Any]]) -> list[str]:
        return await asyncio.to_thread(self._add_sync, collection, items)

    async def _ping(self) -> bool:
        await asyncio.to_thread(lambda: self._get_client().heartbeat())
        return True
