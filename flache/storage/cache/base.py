"""Abstract base class for caches.

Caches map opaque keys to values. A miss is reported as None, never as an
error, and deleting an absent key is a no-op. Every other failure
propagates to the caller.
"""

from abc import ABC, abstractmethod
from typing import Any


class Cache(ABC):
    """Abstract base class for async cache implementations."""

    @abstractmethod
    async def get(self, key: str | bytes) -> Any | None:
        """Get a value from the cache.

        Args:
            key: Identifier of the cached value.

        Returns:
            Decoded value if present, None otherwise.
        """
        ...

    @abstractmethod
    async def set(self, key: str | bytes, value: Any) -> None:
        """Store a value, replacing any existing value for the key.

        Args:
            key: Identifier of the cached value.
            value: Value to cache (must be accepted by the encoder).
        """
        ...

    @abstractmethod
    async def delete(self, key: str | bytes) -> None:
        """Delete a value. Does nothing if the key is absent.

        Args:
            key: Identifier of the cached value.
        """
        ...

    async def close(self) -> None:
        """Release resources held by the cache."""
        return None

    async def __aenter__(self) -> "Cache":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
