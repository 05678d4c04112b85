"""VoiceDoc retrieval core — deduplicated ingestion and per-document similarity search."""

__version__ = "0.1.0"
