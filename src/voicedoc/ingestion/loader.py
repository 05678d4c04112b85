"""Text extraction from uploaded bytes — thin wrappers around LangChain loaders."""

from __future__ import annotations

import os
import tempfile
from typing import TYPE_CHECKING

from langchain_community.document_loaders import PyPDFLoader
from langchain_core.documents import Document

if TYPE_CHECKING:
    from collections.abc import Callable


def load_pdf_bytes(data: bytes, filename: str = "upload.pdf") -> list[Document]:
    """Extract one ``Document`` per PDF page.

    ``PyPDFLoader`` only reads from a path, so the upload is spooled to a
    temporary file first.  Page numbers are stored 0-based under
    ``metadata["page"]`` as the loader reports them.
    """
    fd, path = tempfile.mkstemp(suffix=".pdf")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        pages = PyPDFLoader(path).load()
    finally:
        os.unlink(path)
    for page in pages:
        page.metadata["source"] = filename
    return pages


def load_text_bytes(data: bytes, filename: str = "upload.txt") -> list[Document]:
    """Decode a plain-text / Markdown upload as a single page-less document."""
    text = data.decode("utf-8", errors="replace")
    return [Document(page_content=text, metadata={"source": filename})]


def loader_for(filename: str) -> Callable[[bytes, str], list[Document]]:
    """Pick the extractor for *filename* by extension."""
    if filename.lower().endswith(".pdf"):
        return load_pdf_bytes
    return load_text_bytes
