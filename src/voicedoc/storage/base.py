"""Abstract base class for document-store transports.

The retrieval core needs only three capabilities from its store:
collection-scoped equality queries, single-record adds, and atomic batched
adds.  Adding a new backend only requires subclassing :class:`StorageBackend`
and implementing the ``_``-prefixed coroutines; the public wrappers take care
of timeouts and of translating transport faults into
:class:`~voicedoc.errors.StorageUnavailableError`.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from voicedoc.errors import StorageUnavailableError
from voicedoc.retrieval.models import MetadataFilter

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StoredRecord:
    """A record as returned by a backend: store-assigned id plus its fields."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


class StorageBackend(ABC):
    """Backend-agnostic document-store interface.

    Parameters
    ----------
    timeout:
        Upper bound in seconds for any single call.  ``None`` disables it.
    """

    #: Exceptions that mean "the store is unreachable or refused the call".
    transport_errors: tuple[type[BaseException], ...] = (ConnectionError, OSError)

    def __init__(self, *, timeout: float | None = None) -> None:
        self.timeout = timeout

    # -- public API -----------------------------------------------------------

    async def query(
        self,
        collection: str,
        filters: list[MetadataFilter] | None = None,
        *,
        limit: int | None = None,
    ) -> list[StoredRecord]:
        """Return records in *collection* matching every filter, in store order."""
        return await self._guard(f"query {collection}", self._query(collection, filters or [], limit))

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Insert one record and return its store-assigned id."""
        return await self._guard(f"add {collection}", self._add(collection, data))

    async def add_batch(self, collection: str, items: list[dict[str, Any]]) -> list[str]:
        """Insert *items* atomically: all become visible or none do."""
        if not items:
            return []
        return await self._guard(f"add_batch {collection}", self._add_batch(collection, items))

    async def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        try:
            return await self._guard("health_check", self._ping())
        except StorageUnavailableError:
            logger.warning("%s health-check failed", type(self).__name__, exc_info=True)
            return False

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    async def _query(
        self, collection: str, filters: list[MetadataFilter], limit: int | None
    ) -> list[StoredRecord]: ...

    @abstractmethod
    async def _add(self, collection: str, data: dict[str, Any]) -> str: ...

    @abstractmethod
    async def _add_batch(self, collection: str, items: list[dict[str, Any]]) -> list[str]: ...

    @abstractmethod
    async def _ping(self) -> bool: ...

    # -- internals ------------------------------------------------------------

    async def _guard(self, operation: str, call: Awaitable[T]) -> T:
        """Bound *call* by the timeout and translate transport faults."""
        try:
            if self.timeout is None:
                return await call
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise StorageUnavailableError(operation, f"timed out after {self.timeout}s") from exc
        except self.transport_errors as exc:
            raise StorageUnavailableError(operation, str(exc)) from exc
