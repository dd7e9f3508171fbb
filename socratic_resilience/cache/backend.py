"""
Cache storage backends.

The similarity cache keeps its entries in a ``CacheBackend``; only the
in-memory backend ships here, persistent stores plug in through the
protocol.
"""

import time
from typing import Any, Dict, Optional, Protocol, Tuple


class CacheError(Exception):
    """Raised by backends when a storage operation fails."""


class CacheBackend(Protocol):
    """Async key-value store with per-key TTL."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def clear(self) -> None:
        ...

    async def size(self) -> int:
        ...


class InMemoryCacheBackend:
    """Dictionary-backed store; expired keys are dropped on access."""

    def __init__(self):
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}

    async def get(self, key: str) -> Optional[Any]:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and time.time() >= expires_at:
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires_at = time.time() + ttl if ttl is not None else None
        self._data[key] = (value, expires_at)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def clear(self) -> None:
        self._data.clear()

    async def size(self) -> int:
        return len(self._data)
