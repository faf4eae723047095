"""Abstract base class for storage trees.

A storage tree maps relative, "/"-separated paths to resources under one
root. Caches only ever talk to this interface, so every backend must
behave the same way at this boundary: a missing path is reported as
NotFoundError, and an operation the backend cannot perform raises
UnsupportedOperationError instead of silently doing nothing.
"""

from abc import ABC, abstractmethod

from flache.storage.handle import StorageHandle


class StorageTree(ABC):
    """Abstract base class for storage tree implementations."""

    @property
    @abstractmethod
    def root(self) -> str:
        """Identifier of the tree root (a directory path, or "/" for flat trees)."""
        ...

    @abstractmethod
    async def open_file(self, path: str) -> StorageHandle:
        """Open a handle covering the full current extent of a file.

        Args:
            path: Path relative to the tree root.

        Returns:
            Handle over `[0, size)` of the file.
        """
        ...

    @abstractmethod
    async def read_file(self, path: str) -> bytes:
        """Read the full content of a file.

        Raises:
            NotFoundError: If no file exists at `path`.
        """
        ...

    @abstractmethod
    async def write_file(self, path: str, data: bytes) -> None:
        """Create or overwrite a file, creating parent directories as needed."""
        ...

    @abstractmethod
    async def remove_file(self, path: str) -> None:
        """Remove a file.

        Raises:
            NotFoundError: If no file exists at `path`.
        """
        ...

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a file exists at `path`."""
        ...

    async def close(self) -> None:
        """Release resources held by the tree."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(root={self.root!r})"
