"""Filesystem-backed storage tree.

Directory structure (as laid out by ShardedCache):
    {root}/
    ├── {h0}/
    │   └── {h1}/
    │       └── {40-char digest}
    └── ...

The root directory is created once, in the background, the first time
the tree is used. Every operation waits for it before touching the disk.
"""

import asyncio
import contextlib
import logging
import os
import tempfile
from pathlib import Path, PurePosixPath

from flache.consts import DEFAULT_CACHE_PATH, SHARD_LEVELS, TEMP_FILE_SUFFIX
from flache.errors import InvalidPathError, NotFoundError, StorageIOError
from flache.models.model_storage import TreeStats
from flache.storage.handle import LocalFileHandle, _FileResource
from flache.storage.tree.base import StorageTree

logger = logging.getLogger(__name__)


class DirectoryTree(StorageTree):
    """Storage tree over a directory on the local filesystem."""

    def __init__(self, root: Path | str = DEFAULT_CACHE_PATH):
        """Initialize DirectoryTree.

        Args:
            root: Root directory. Created on first use if it does not exist.
        """
        self._root = Path(root)
        self._root_task: asyncio.Task | None = None
        self._root_ready = False

    @property
    def root(self) -> str:
        return str(self._root)

    @property
    def root_path(self) -> Path:
        return self._root

    # === READINESS GATE ===

    def _create_root(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Storage root ready at {self._root}")

    async def _ready(self) -> None:
        """Wait until the root directory exists. Concurrent callers share one creation."""
        if self._root_ready:
            return
        loop = asyncio.get_running_loop()
        if self._root_task is None or self._root_task.get_loop() is not loop:
            self._root_task = loop.create_task(asyncio.to_thread(self._create_root))
        try:
            await asyncio.shield(self._root_task)
        except OSError as e:
            # Let the next operation retry instead of replaying the failure
            self._root_task = None
            raise StorageIOError(
                "Failed to create storage root", context={"root": str(self._root)}
            ) from e
        self._root_ready = True

    # === PATH RESOLUTION ===

    def _resolve(self, path: str) -> Path:
        """Map a relative tree path to an absolute path inside the root.

        Raises:
            InvalidPathError: If the path is empty or climbs out of the root.
        """
        parts = [p for p in PurePosixPath(path.replace("\\", "/")).parts if p not in ("/", ".")]
        if not parts:
            raise InvalidPathError("Empty storage path", context={"path": path})
        if ".." in parts:
            raise InvalidPathError("Storage path escapes the tree root", context={"path": path})
        return self._root.joinpath(*parts)

    # === FILE OPERATIONS ===

    async def read_file(self, path: str) -> bytes:
        await self._ready()
        abs_path = self._resolve(path)
        try:
            data = await asyncio.to_thread(abs_path.read_bytes)
        except FileNotFoundError as e:
            raise NotFoundError("No such file", context={"path": path}) from e
        except OSError as e:
            raise StorageIOError("Failed to read file", context={"path": path}) from e
        logger.debug(f"Read {len(data)} bytes from {path}")
        return data

    @staticmethod
    def _write_atomic(abs_path: Path, data: bytes) -> None:
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=abs_path.parent, prefix=f".{abs_path.name}.", suffix=TEMP_FILE_SUFFIX
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, abs_path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

    async def write_file(self, path: str, data: bytes) -> None:
        await self._ready()
        abs_path = self._resolve(path)
        try:
            await asyncio.to_thread(self._write_atomic, abs_path, bytes(data))
        except OSError as e:
            raise StorageIOError("Failed to write file", context={"path": path}) from e
        logger.debug(f"Wrote {len(data)} bytes to {path}")

    async def remove_file(self, path: str) -> None:
        await self._ready()
        abs_path = self._resolve(path)
        try:
            await asyncio.to_thread(abs_path.unlink)
        except FileNotFoundError as e:
            raise NotFoundError("No such file", context={"path": path}) from e
        except OSError as e:
            raise StorageIOError("Failed to remove file", context={"path": path}) from e
        logger.debug(f"Removed {path}")

    @staticmethod
    def _open_resource(abs_path: Path) -> tuple[_FileResource, int]:
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        resource = _FileResource.open(abs_path)
        return resource, os.fstat(resource.file.fileno()).st_size

    async def open_file(self, path: str) -> LocalFileHandle:
        """Open a file for ranged reads and writes, creating it if absent."""
        await self._ready()
        abs_path = self._resolve(path)
        try:
            resource, size = await asyncio.to_thread(self._open_resource, abs_path)
        except OSError as e:
            raise StorageIOError("Failed to open file", context={"path": path}) from e
        logger.debug(f"Opened {path} ({size} bytes)")
        return LocalFileHandle(resource, 0, size)

    async def exists(self, path: str) -> bool:
        await self._ready()
        return await asyncio.to_thread(self._resolve(path).is_file)

    # === MAINTENANCE ===

    def _collect_stats(self) -> TreeStats:
        stats = TreeStats(root=str(self._root))
        # Entries live exactly SHARD_LEVELS directories below the root
        pattern = "/".join(["*"] * SHARD_LEVELS)
        for shard_dir in self._root.glob(pattern):
            if not shard_dir.is_dir():
                continue
            stats.shard_dirs += 1
            for entry in shard_dir.iterdir():
                if entry.is_file() and not entry.name.endswith(TEMP_FILE_SUFFIX):
                    stats.entries += 1
                    stats.total_bytes += entry.stat().st_size
        return stats

    async def stats(self) -> TreeStats:
        """Count stored entries and their total size."""
        await self._ready()
        try:
            return await asyncio.to_thread(self._collect_stats)
        except OSError as e:
            raise StorageIOError("Failed to scan storage root", context={"root": self.root}) from e
