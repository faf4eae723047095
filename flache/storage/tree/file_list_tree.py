"""Read-only storage tree over files supplied by a host UI.

Entries arrive pre-populated (e.g. from an interactive file pick) and are
looked up by exact name. The cache cannot create or remove them, so writes
and removals raise UnsupportedOperationError.
"""

import logging
from collections.abc import Iterable

from flache.errors import NotFoundError, UnsupportedOperationError
from flache.models.model_storage import SuppliedFile
from flache.storage.handle import BlobHandle
from flache.storage.tree.base import StorageTree

logger = logging.getLogger(__name__)


def _normalize(name: str) -> str:
    return name.lstrip("/")


class FileListTree(StorageTree):
    """Flat name -> file mapping exposed as a storage tree."""

    def __init__(self, files: Iterable[SuppliedFile] = ()):
        self._files: dict[str, SuppliedFile] = {}
        self.add_files(files)

    @property
    def root(self) -> str:
        return "/"

    @property
    def names(self) -> list[str]:
        return sorted(self._files)

    def add_files(self, files: Iterable[SuppliedFile]) -> None:
        """Register supplied files. A later file replaces an earlier one with the same name."""
        for file in files:
            self._files[_normalize(file.name)] = file
            logger.debug(f"Registered supplied file {file.name} ({file.size} bytes)")

    def _lookup(self, path: str) -> SuppliedFile:
        try:
            return self._files[_normalize(path)]
        except KeyError as e:
            raise NotFoundError("No such file", context={"path": path}) from e

    async def open_file(self, path: str) -> BlobHandle:
        file = self._lookup(path)
        return BlobHandle(file.data)

    async def read_file(self, path: str) -> bytes:
        return self._lookup(path).data

    async def write_file(self, path: str, data: bytes) -> None:
        raise UnsupportedOperationError(
            "Supplied file trees are read-only", context={"path": path, "operation": "write"}
        )

    async def remove_file(self, path: str) -> None:
        raise UnsupportedOperationError(
            "Supplied file trees are read-only", context={"path": path, "operation": "remove"}
        )

    async def exists(self, path: str) -> bool:
        return _normalize(path) in self._files
