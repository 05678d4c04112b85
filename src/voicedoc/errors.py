"""Exception hierarchy shared by the storage, retrieval and ingestion layers."""

from __future__ import annotations


class VoiceDocError(Exception):
    """Base class for all errors raised by this package."""


class StorageUnavailableError(VoiceDocError):
    """The backing store could not be reached, rejected the call, or timed out."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        message = f"Storage unavailable during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedVectorError(VoiceDocError, ValueError):
    """An embedding is empty or its dimensionality differs from its counterpart."""


class IngestionError(VoiceDocError):
    """A document could not be stored; it must not be treated as ingested."""

    def __init__(self, filename: str, content_hash: str, detail: str = "") -> None:
        self.filename = filename
        self.content_hash = content_hash
        message = f"Ingestion of {filename!r} ({content_hash[:12]}) failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
