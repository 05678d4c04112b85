"""FastAPI application exposing document ingestion and scoped retrieval."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, model_validator

from voicedoc.config import settings
from voicedoc.errors import IngestionError
from voicedoc.ingestion.embedder import Embedder, get_embedder
from voicedoc.ingestion.service import IngestionService, IngestionStatus
from voicedoc.logging_config import configure_logging
from voicedoc.retrieval import ChunkStore, DocumentRegistry, SimilaritySearchEngine
from voicedoc.storage import StorageBackend, get_storage_backend


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings.log_level)
    yield


app = FastAPI(
    title="VoiceDoc Retrieval API",
    version="0.1.0",
    description="Per-document ingestion and similarity search over stored chunks.",
    lifespan=lifespan,
)


# ── Request / Response schemas ────────────────────────────────────────
class SearchRequest(BaseModel):
    """A question scoped to one document.  Give ``query`` text or a ready ``embedding``."""

    query: str | None = None
    embedding: list[float] | None = None
    filename: str | None = None
    top_k: int = Field(default=settings.default_top_k, ge=1, le=100)

    @model_validator(mode="after")
    def _query_or_embedding(self) -> SearchRequest:
        if self.query is None and self.embedding is None:
            raise ValueError("either 'query' or 'embedding' is required")
        return self


class SearchHit(BaseModel):
    id: str | None
    text: str
    score: float
    filename: str
    page_number: int | None = None


class SearchResponse(BaseModel):
    results: list[SearchHit] = []
    context_found: bool = False


class IngestResponse(BaseModel):
    status: IngestionStatus
    filename: str
    content_hash: str
    chunk_count: int


# ── Dependencies ──────────────────────────────────────────────────────
BackendDep = Annotated[StorageBackend, Depends(get_storage_backend)]
EmbedderDep = Annotated[Embedder, Depends(get_embedder)]


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ready")
async def ready(backend: BackendDep) -> JSONResponse:
    """Readiness probe: 503 until the storage backend answers."""
    if await backend.health_check():
        return JSONResponse({"status": "ready"})
    return JSONResponse({"status": "unavailable"}, status_code=503)


@app.post("/documents", response_model=IngestResponse)
async def ingest_document(
    backend: BackendDep,
    embedder: EmbedderDep,
    file: Annotated[UploadFile, File()],
    persona: Annotated[str, Form()],
    summary: Annotated[str | None, Form()] = None,
) -> IngestResponse:
    """Store an uploaded document unless identical bytes were ingested before."""
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    filename = file.filename or "upload"

    service = IngestionService(DocumentRegistry(backend), ChunkStore(backend), embedder)
    try:
        result = await service.ingest_file(data, filename, persona, summary)
    except IngestionError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return IngestResponse(
        status=result.status,
        filename=result.record.filename,
        content_hash=result.record.content_hash,
        chunk_count=result.chunk_count,
    )


@app.post("/search", response_model=SearchResponse)
async def search(request: SearchRequest, backend: BackendDep, embedder: EmbedderDep) -> SearchResponse:
    """Return the chunks of ``filename`` most similar to the query."""
    embedding = request.embedding
    if embedding is None:
        embedding = await asyncio.to_thread(embedder.embed, request.query)

    engine = SimilaritySearchEngine(ChunkStore(backend))
    hits = await engine.search_scored(embedding, request.top_k, request.filename)

    results = [
        SearchHit(
            id=hit.chunk.id,
            text=hit.chunk.text,
            score=hit.score,
            filename=hit.chunk.metadata.filename,
            page_number=hit.chunk.metadata.page_number,
        )
        for hit in hits
    ]
    return SearchResponse(results=results, context_found=bool(results))


def main() -> None:
    """Run the API with uvicorn (``voicedoc-serve``)."""
    import uvicorn

    uvicorn.run("voicedoc.serving.app:app", host="0.0.0.0", port=8080)


if __name__ == "__main__":
    main()
