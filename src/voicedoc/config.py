"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from ``VOICEDOC_*`` env vars or .env file."""

    # Storage transport
    storage_backend: Literal["firestore", "chroma", "memory"] = Field(
        default="firestore",
        description="Which document store backs the registry and the chunk store.",
    )
    firestore_project_id: str = Field(default="", description="GCP project; empty uses ADC default")
    firestore_database_id: str = "voicedoc-fs"
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    storage_timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for any single storage call before it counts as unavailable.",
    )

    # Collections
    documents_collection: str = "documents"
    chunks_collection: str = "document_chunks"

    # Retrieval
    default_top_k: int = 3

    # Ingestion collaborators
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    chunk_size: int = 1000
    chunk_overlap: int = 200

    log_level: str = "INFO"

    model_config = {"env_prefix": "VOICEDOC_", "env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import `settings` wherever needed.
settings = Settings()
