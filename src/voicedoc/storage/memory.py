"""Process-local storage backend for tests and single-process local runs."""

from __future__ import annotations

import asyncio
import copy
from collections import defaultdict
from typing import Any
from uuid import uuid4

from voicedoc.retrieval.models import MetadataFilter
from voicedoc.storage.base import StorageBackend, StoredRecord


class InMemoryBackend(StorageBackend):
    """Dict-of-lists store preserving insertion order.

    Records are deep-copied on the way in and out so callers can never mutate
    stored state by accident.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)
        self._collections: dict[str, list[StoredRecord]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def _query(
        self, collection: str, filters: list[MetadataFilter], limit: int | None
    ) -> list[StoredRecord]:
        hits: list[StoredRecord] = []
        for record in self._collections.get(collection, []):
            if all(f.matches(record.data) for f in filters):
                hits.append(StoredRecord(record.id, copy.deepcopy(record.data)))
                if limit is not None and len(hits) >= limit:
                    break
        return hits

    async def _add(self, collection: str, data: dict[str, Any]) -> str:
        async with self._lock:
            record_id = uuid4().hex
            self._collections[collection].append(StoredRecord(record_id, copy.deepcopy(data)))
        return record_id

    async def _add_batch(self, collection: str, items: list[dict[str, Any]]) -> list[str]:
        staged = [StoredRecord(uuid4().hex, copy.deepcopy(item)) for item in items]
        async with self._lock:
            self._collections[collection].extend(staged)
        return [record.id for record in staged]

    async def _ping(self) -> bool:
        return True

    def count(self, collection: str) -> int:
        """Number of records in *collection* (test helper)."""
        return len(self._collections.get(collection, []))
