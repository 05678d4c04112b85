"""Domain models for registered documents, stored chunks and ranking output.

Field aliases mirror the persisted layout (``hash``, ``pageNumber``) so that
records written by earlier deployments of the application read back
unchanged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class MetadataFilter(BaseModel):
    """Declarative filter for storage queries.

    Attributes
    ----------
    field:
        Dotted path of the stored field (e.g. ``"hash"``, ``"metadata.filename"``).
    operator:
        Comparison operator; only ``eq`` is supported.
    value:
        The value to compare against.
    """

    field: str
    operator: str = "eq"
    value: Any = None

    @classmethod
    def equals(cls, field: str, value: Any) -> MetadataFilter:
        return cls(field=field, operator="eq", value=value)

    def matches(self, data: dict[str, Any]) -> bool:
        """Evaluate the filter against a stored record (used by in-process stores)."""
        current: Any = data
        for part in self.field.split("."):
            if not isinstance(current, dict) or part not in current:
                return False
            current = current[part]
        if self.operator == "eq":
            return current == self.value
        raise ValueError(f"Unsupported filter operator: {self.operator!r}")


class DocumentRecord(BaseModel):
    """One registry entry per distinct uploaded document.

    Attributes
    ----------
    content_hash:
        SHA-256 hex digest of the raw uploaded bytes — the dedup key.
    filename:
        Human-readable name; doubles as the retrieval scoping key.
    persona:
        Classification label assigned at ingestion (legal, financial, ...).
    summary:
        Optional short summary produced at ingestion.
    created_at:
        Stamped by the registry on insert, never mutated.
    """

    model_config = ConfigDict(populate_by_name=True)

    content_hash: str = Field(alias="hash")
    filename: str
    persona: str
    summary: str | None = None
    created_at: datetime | None = None

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ChunkMetadata(BaseModel):
    """Scoping metadata copied from the owning :class:`DocumentRecord`."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    persona: str
    page_number: int | None = Field(default=None, alias="pageNumber")
    content_hash: str | None = Field(default=None, alias="contentHash")


class Chunk(BaseModel):
    """A stored fragment of a document together with its embedding."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    text: str
    embedding: list[float]
    metadata: ChunkMetadata
    created_at: datetime | None = None

    def to_storage(self) -> dict[str, Any]:
        """Serialise for the chunks collection; ``id`` is owned by the store."""
        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)

    @classmethod
    def from_storage(cls, record_id: str, data: dict[str, Any]) -> Chunk:
        return cls.model_validate({**data, "id": record_id})


class ScoredChunk(BaseModel):
    """A candidate chunk paired with its relevance score."""

    chunk: Chunk
    score: float

    def __str__(self) -> str:  # noqa: D105
        page = self.chunk.metadata.page_number
        where = f"{self.chunk.metadata.filename}:p{page}" if page is not None else self.chunk.metadata.filename
        return f"[{where} {self.score:.3f}] {self.chunk.text[:120]}…"
