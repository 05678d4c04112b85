"""Unit tests for the Firestore backend against an in-process fake client."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

pytest.importorskip("google.cloud.firestore")

from google.api_core import exceptions as gapi_exceptions  # noqa: E402

from voicedoc.errors import StorageUnavailableError  # noqa: E402
from voicedoc.retrieval.models import MetadataFilter  # noqa: E402
from voicedoc.storage.firestore_store import FirestoreBackend, _build_field_filters  # noqa: E402


# ── Fake AsyncClient ────────────────────────────────────────────────────


class _Snapshot:
    def __init__(self, doc_id: str, data: dict[str, Any]) -> None:
        self.id = doc_id
        self._data = data

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)


class _FakeQuery:
    def __init__(self, rows: list[_Snapshot], log: dict[str, Any]) -> None:
        self._rows = rows
        self._log = log

    def where(self, *, filter: Any) -> _FakeQuery:  # noqa: A002
        self._log.setdefault("filters", []).append((filter.field_path, filter.op_string, filter.value))
        return self

    def limit(self, n: int) -> _FakeQuery:
        self._log["limit"] = n
        return self

    async def stream(self):  # noqa: ANN201
        for row in self._rows:
            yield row


class _FakeCollection(_FakeQuery):
    def __init__(self, client: FakeFirestoreClient, name: str) -> None:
        super().__init__(client.rows.get(name, []), client.log)
        self._client = client
        self._name = name

    async def add(self, data: dict[str, Any]) -> tuple[object, Any]:
        if self._client.fail_with is not None:
            raise self._client.fail_with
        self._client.added.append((self._name, data))
        ref = MagicMock()
        ref.id = "added-1"
        return object(), ref

    def document(self) -> Any:
        ref = MagicMock()
        ref.id = f"doc-{len(self._client.batch_refs)}"
        self._client.batch_refs.append(ref)
        return ref


class _FakeBatch:
    def __init__(self, client: FakeFirestoreClient) -> None:
        self._client = client
        self.writes: list[tuple[Any, dict[str, Any]]] = []

    def set(self, ref: Any, data: dict[str, Any]) -> None:
        self.writes.append((ref, data))

    async def commit(self) -> None:
        if self._client.fail_with is not None:
            raise self._client.fail_with
        self._client.committed.append(self.writes)


class FakeFirestoreClient:
    def __init__(self, rows: dict[str, list[_Snapshot]] | None = None) -> None:
        self.rows = rows or {}
        self.log: dict[str, Any] = {}
        self.added: list[tuple[str, dict[str, Any]]] = []
        self.committed: list[list[tuple[Any, dict[str, Any]]]] = []
        self.batch_refs: list[Any] = []
        self.fail_with: Exception | None = None

    def collection(self, name: str) -> _FakeCollection:
        return _FakeCollection(self, name)

    def batch(self) -> _FakeBatch:
        return _FakeBatch(self)


# ── Tests ───────────────────────────────────────────────────────────────


class TestBuildFieldFilters:
    def test_equality_maps_to_double_equals(self) -> None:
        (clause,) = _build_field_filters([MetadataFilter.equals("metadata.filename", "x.pdf")])
        assert (clause.field_path, clause.op_string, clause.value) == ("metadata.filename", "==", "x.pdf")

    def test_unsupported_operator_raises(self) -> None:
        with pytest.raises(ValueError, match="Unsupported filter operator"):
            _build_field_filters([MetadataFilter(field="x", operator="gte", value=1)])


class TestFirestoreBackend:
    @pytest.mark.asyncio
    async def test_query_applies_filters_and_limit(self) -> None:
        client = FakeFirestoreClient({"documents": [_Snapshot("d1", {"hash": "abc", "filename": "x.pdf"})]})
        backend = FirestoreBackend(client=client, timeout=None)

        hits = await backend.query("documents", [MetadataFilter.equals("hash", "abc")], limit=1)

        assert [(h.id, h.data["filename"]) for h in hits] == [("d1", "x.pdf")]
        assert client.log["filters"] == [("hash", "==", "abc")]
        assert client.log["limit"] == 1

    @pytest.mark.asyncio
    async def test_add_returns_document_id(self) -> None:
        client = FakeFirestoreClient()
        backend = FirestoreBackend(client=client, timeout=None)

        assert await backend.add("documents", {"hash": "abc"}) == "added-1"
        assert client.added == [("documents", {"hash": "abc"})]

    @pytest.mark.asyncio
    async def test_add_batch_commits_once(self) -> None:
        client = FakeFirestoreClient()
        backend = FirestoreBackend(client=client, timeout=None)

        ids = await backend.add_batch("document_chunks", [{"text": "a"}, {"text": "b"}])

        assert ids == ["doc-0", "doc-1"]
        assert len(client.committed) == 1
        assert [data for _, data in client.committed[0]] == [{"text": "a"}, {"text": "b"}]

    @pytest.mark.asyncio
    async def test_api_errors_become_storage_unavailable(self) -> None:
        client = FakeFirestoreClient()
        client.fail_with = gapi_exceptions.ServiceUnavailable("backend down")
        backend = FirestoreBackend(client=client, timeout=None)

        with pytest.raises(StorageUnavailableError):
            await backend.add_batch("document_chunks", [{"text": "a"}])
        assert client.committed == []

    @pytest.mark.asyncio
    async def test_health_check_probes_collection(self) -> None:
        client = FakeFirestoreClient()
        backend = FirestoreBackend(client=client, probe_collection="documents", timeout=None)
        assert await backend.health_check() is True
        assert client.log["limit"] == 1

    def test_client_is_created_lazily(self, monkeypatch: pytest.MonkeyPatch) -> None:
        factory = MagicMock()
        monkeypatch.setattr("voicedoc.storage.firestore_store.firestore.AsyncClient", factory)

        backend = FirestoreBackend(project_id="proj", database_id="voicedoc-fs")
        factory.assert_not_called()

        assert backend.client is factory.return_value
        assert backend.client is factory.return_value
        factory.assert_called_once_with(project="proj", database="voicedoc-fs")
