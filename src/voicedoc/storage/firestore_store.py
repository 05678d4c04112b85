"""Firestore implementation of the storage abstraction."""

from __future__ import annotations

import logging
from typing import Any

from google.api_core import exceptions as gapi_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from voicedoc.config import settings
from voicedoc.retrieval.models import MetadataFilter
from voicedoc.storage.base import StorageBackend, StoredRecord

logger = logging.getLogger(__name__)

_OP_MAP = {"eq": "=="}


def _build_field_filters(filters: list[MetadataFilter]) -> list[FieldFilter]:
    """Convert :class:`MetadataFilter` objects to Firestore ``FieldFilter`` clauses."""
    clauses: list[FieldFilter] = []
    for f in filters:
        op = _OP_MAP.get(f.operator)
        if op is None:
            raise ValueError(f"Unsupported filter operator: {f.operator!r}")
        clauses.append(FieldFilter(f.field, op, f.value))
    return clauses


class FirestoreBackend(StorageBackend):
    """Firestore-backed document store.

    The ``AsyncClient`` is created on first use rather than at construction
    so that importing or building the app never needs credentials.

    Parameters
    ----------
    project_id:
        GCP project; empty string falls back to the ambient ADC project.
    database_id:
        Named Firestore database.
    probe_collection:
        Collection read (``limit 1``) by :meth:`health_check`.
    """

    transport_errors = (
        gapi_exceptions.GoogleAPIError,
        auth_exceptions.GoogleAuthError,
        ConnectionError,
        OSError,
    )

    def __init__(
        self,
        project_id: str = settings.firestore_project_id,
        database_id: str = settings.firestore_database_id,
        *,
        probe_collection: str = settings.documents_collection,
        timeout: float | None = settings.storage_timeout_seconds,
        client: firestore.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self._project_id = project_id or None
        self._database_id = database_id
        self._probe_collection = probe_collection
        self._client = client

    @property
    def client(self) -> firestore.AsyncClient:
        if self._client is None:
            logger.info(
                "Opening Firestore client (project=%s, database=%s)",
                self._project_id or "<default>",
                self._database_id,
            )
            self._client = firestore.AsyncClient(project=self._project_id, database=self._database_id)
        return self._client

    # -- StorageBackend overrides ---------------------------------------------

    async def _query(
        self, collection: str, filters: list[MetadataFilter], limit: int | None
    ) -> list[StoredRecord]:
        query: Any = self.client.collection(collection)
        for clause in _build_field_filters(filters):
            query = query.where(filter=clause)
        if limit is not None:
            query = query.limit(limit)

        records: list[StoredRecord] = []
        async for snapshot in query.stream():
            records.append(StoredRecord(snapshot.id, snapshot.to_dict() or {}))
        return records

    async def _add(self, collection: str, data: dict[str, Any]) -> str:
        _, doc_ref = await self.client.collection(collection).add(data)
        return doc_ref.id

    async def _add_batch(self, collection: str, items: list[dict[str, Any]]) -> list[str]:
        # A WriteBatch commits all-or-nothing (max 500 writes per batch).
        batch = self.client.batch()
        ids: list[str] = []
        for item in items:
            doc_ref = self.client.collection(collection).document()
            batch.set(doc_ref, item)
            ids.append(doc_ref.id)
        await batch.commit()
        return ids

    async def _ping(self) -> bool:
        await self._query(self._probe_collection, [], 1)
        return True
