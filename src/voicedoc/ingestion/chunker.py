"""Text chunking strategies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_text_splitters import RecursiveCharacterTextSplitter
from pydantic import BaseModel

from voicedoc.config import settings

if TYPE_CHECKING:
    from langchain_core.documents import Document


class ChunkDraft(BaseModel):
    """Chunk text awaiting its embedding; ``page_number`` is 1-based."""

    text: str
    page_number: int | None = None


def chunk_documents(
    documents: list[Document],
    chunk_size: int = settings.chunk_size,
    chunk_overlap: int = settings.chunk_overlap,
) -> list[ChunkDraft]:
    """Split extracted *documents* into drafts ready for embedding.

    Parameters
    ----------
    documents:
        Pages produced by a loader.  A ``metadata["page"]`` entry (0-based,
        as PDF loaders report it) becomes the draft's 1-based page number.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.

    Returns
    -------
    list[ChunkDraft]
        Non-blank chunks in document order.
    """
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=["\n\n", "\n", ". ", " ", ""],
    )
    drafts: list[ChunkDraft] = []
    for piece in splitter.split_documents(documents):
        text = piece.page_content.strip()
        if not text:
            continue
        page = piece.metadata.get("page")
        drafts.append(ChunkDraft(text=text, page_number=page + 1 if isinstance(page, int) else None))
    return drafts
