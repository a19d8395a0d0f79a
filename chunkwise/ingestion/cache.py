"""
Ingestion cache keyed by transformation fingerprint.

The cache stores the output node sequence of a transform under the
fingerprint of its input nodes and configuration. Entries are written once
and read many times; nothing is evicted automatically. Storage is delegated
to a key-value backend so remote stores can be plugged in.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Dict, List, Optional, Sequence, TypeVar

from chunkwise.config.settings import CacheSettings
from chunkwise.core.node import TextNode
from chunkwise.utils.exceptions import CacheUnavailableError
from chunkwise.utils.logging import LoggerMixin

T = TypeVar("T")

DEFAULT_COLLECTION = "chunkwise_cache"


class BaseKVStore(ABC):
    """
    Async key-value backend contract.

    Implementations must make single-key writes atomic; concurrent writes to
    the same key may resolve in any order.
    """

    @abstractmethod
    async def get(self, key: str, collection: str) -> Optional[Dict[str, Any]]:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    async def put(self, key: str, value: Dict[str, Any], collection: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str, collection: str) -> bool:
        """Remove ``key``; return whether it existed."""


class InMemoryKVStore(BaseKVStore):
    """Unbounded in-process backend, one dict per collection."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}

    async def get(self, key: str, collection: str) -> Optional[Dict[str, Any]]:
        return self._data.get(collection, {}).get(key)

    async def put(self, key: str, value: Dict[str, Any], collection: str) -> None:
        self._data.setdefault(collection, {})[key] = value

    async def delete(self, key: str, collection: str) -> bool:
        return self._data.get(collection, {}).pop(key, None) is not None

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._data.values())


class IngestionCache(LoggerMixin):
    """
    Fingerprint-addressed store of transform outputs.

    Nodes are stored as plain dicts and rebuilt on every read, so ``get``
    returns values equal to, never identical with, what ``put`` received.
    A stored empty list is a hit; ``None`` means not found.

    Args:
        backend: Key-value backend (in-memory by default).
        collection: Collection name inside the backend.
        timeout: Seconds to wait for a backend call, None for no limit.

    Example:
        >>> cache = IngestionCache()
        >>> await cache.put(fingerprint, nodes)
        >>> await cache.get(fingerprint) == nodes
        True
    """

    def __init__(
        self,
        backend: Optional[BaseKVStore] = None,
        collection: str = DEFAULT_COLLECTION,
        timeout: Optional[float] = None,
    ) -> None:
        self.backend = backend if backend is not None else InMemoryKVStore()
        self.collection = collection
        self.timeout = timeout

        self.logger.info(
            "ingestion_cache_initialized",
            backend=type(self.backend).__name__,
            collection=collection,
            timeout=timeout,
        )

    @classmethod
    def from_settings(
        cls, settings: CacheSettings, backend: Optional[BaseKVStore] = None
    ) -> IngestionCache:
        return cls(backend=backend, collection=settings.collection, timeout=settings.timeout)

    async def get(self, fingerprint: str) -> Optional[List[TextNode]]:
        """
        Look up the nodes stored under ``fingerprint``.

        Returns:
            The stored node sequence, or None when the key is unknown.

        Raises:
            CacheUnavailableError: If the backend fails or times out.
        """
        value = await self._call("get", self.backend.get(fingerprint, self.collection), fingerprint)
        if value is None:
            self.logger.debug("cache_miss", fingerprint=fingerprint)
            return None
        self.logger.debug("cache_hit", fingerprint=fingerprint)
        return [TextNode.model_validate(data) for data in value["nodes"]]

    async def put(self, fingerprint: str, nodes: Sequence[TextNode]) -> None:
        """
        Store ``nodes`` under ``fingerprint``, overwriting any previous entry.

        Raises:
            CacheUnavailableError: If the backend fails or times out.
        """
        value = {"nodes": [node.model_dump() for node in nodes]}
        await self._call("put", self.backend.put(fingerprint, value, self.collection), fingerprint)
        self.logger.debug("cache_put", fingerprint=fingerprint, num_nodes=len(nodes))

    async def delete(self, fingerprint: str) -> bool:
        """Remove the entry for ``fingerprint``; return whether it existed."""
        return await self._call(
            "delete", self.backend.delete(fingerprint, self.collection), fingerprint
        )

    async def _call(self, operation: str, call: Awaitable[T], fingerprint: str) -> T:
        try:
            if self.timeout is None:
                return await call
            return await asyncio.wait_for(call, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            self.logger.error(
                "cache_backend_timeout",
                operation=operation,
                fingerprint=fingerprint,
                timeout=self.timeout,
            )
            raise CacheUnavailableError(
                f"Cache {operation} timed out after {self.timeout}s",
                details={"fingerprint": fingerprint, "collection": self.collection},
                cause=e,
            ) from e
        except Exception as e:
            self.logger.error(
                "cache_backend_failed",
                operation=operation,
                fingerprint=fingerprint,
                error=str(e),
            )
            raise CacheUnavailableError(
                f"Cache {operation} failed: {e}",
                details={"fingerprint": fingerprint, "collection": self.collection},
                cause=e,
            ) from e
