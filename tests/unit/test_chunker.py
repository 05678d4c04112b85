"""Unit tests for the chunker and the byte loaders."""

from langchain_core.documents import Document

from voicedoc.ingestion.chunker import chunk_documents
from voicedoc.ingestion.loader import load_pdf_bytes, load_text_bytes, loader_for


def test_chunk_documents_splits_long_text() -> None:
    """A document longer than chunk_size should be split."""
    long_text = "word " * 500  # ~2500 chars
    docs = [Document(page_content=long_text, metadata={"source": "test"})]
    chunks = chunk_documents(docs, chunk_size=256, chunk_overlap=32)
    assert len(chunks) > 1
    assert all(len(c.text) <= 256 for c in chunks)


def test_chunk_documents_converts_page_to_one_based() -> None:
    """PDF loaders report 0-based pages; drafts carry 1-based page numbers."""
    docs = [
        Document(page_content="First page.", metadata={"page": 0}),
        Document(page_content="Second page.", metadata={"page": 1}),
    ]
    chunks = chunk_documents(docs, chunk_size=256, chunk_overlap=0)
    assert [c.page_number for c in chunks] == [1, 2]


def test_chunk_documents_without_page_metadata() -> None:
    docs = [Document(page_content="Short text.", metadata={"source": "test.md"})]
    chunks = chunk_documents(docs, chunk_size=256, chunk_overlap=0)
    assert [(c.text, c.page_number) for c in chunks] == [("Short text.", None)]


def test_chunk_documents_drops_blank_pages() -> None:
    docs = [Document(page_content="   \n\n  ", metadata={"page": 0})]
    assert chunk_documents(docs) == []


def test_chunk_documents_empty_input() -> None:
    """An empty list should return an empty list."""
    assert chunk_documents([]) == []


def test_load_text_bytes_decodes_utf8() -> None:
    (doc,) = load_text_bytes("Résumé".encode(), "cv.md")
    assert doc.page_content == "Résumé"
    assert doc.metadata == {"source": "cv.md"}


def test_loader_for_picks_by_extension() -> None:
    assert loader_for("Contract.PDF") is load_pdf_bytes
    assert loader_for("notes.md") is load_text_bytes
