"""Range-bounded handles onto byte-addressable resources.

A handle is a `[start, end)` view over a resource it does not own
exclusively: slicing yields a new handle over the same resource with a
narrower range, nothing is copied. Bytes come out through `stream()`.
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

from flache.consts import DEFAULT_CHUNK_SIZE, DEFAULT_HIGH_WATER_MARK
from flache.errors import StorageIOError, UnsupportedOperationError
from flache.storage.stream import ByteStream

logger = logging.getLogger(__name__)


class StorageHandle(ABC):
    """Abstract base class for an open, range-bounded resource."""

    def __init__(self, start: int, end: int):
        if start < 0 or end < start:
            raise ValueError(f"Invalid handle range [{start}, {end})")
        self._start = start
        self._end = end

    @property
    def start(self) -> int:
        return self._start

    @property
    def end(self) -> int:
        return self._end

    @property
    def size(self) -> int:
        """Logical size of the view, fixed at construction."""
        return self._end - self._start

    def _slice_range(self, start: int | None, end: int | None) -> tuple[int, int]:
        """Resolve slice bounds, defaulting to this handle's own bounds.

        Offsets are absolute positions in the underlying resource and must
        stay inside this handle's range.
        """
        new_start = self._start if start is None else start
        new_end = self._end if end is None else end
        if not self._start <= new_start <= new_end <= self._end:
            raise ValueError(
                f"Slice [{new_start}, {new_end}) is outside handle range [{self._start}, {self._end})"
            )
        return new_start, new_end

    @abstractmethod
    def slice(self, start: int | None = None, end: int | None = None) -> "StorageHandle":
        """Return a handle over a sub-range of the same resource.

        Args:
            start: Absolute start offset. None keeps the current start.
            end: Absolute end offset. None keeps the current end.
        """
        ...

    @abstractmethod
    def stream(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
    ) -> ByteStream:
        """Return a fresh pull stream over this handle's range."""
        ...

    @abstractmethod
    async def write(self, data: bytes) -> int:
        """Write at the handle's position and advance it.

        The handle's logical size does not change; open the path again to
        see the new extent.

        Returns:
            Number of bytes written.
        """
        ...

    async def read(self) -> bytes:
        """Read the whole range into memory."""
        return await self.stream().read_all()

    async def close(self) -> None:
        """Release the underlying resource. Slices sharing it are closed too."""
        return None

    async def __aenter__(self) -> "StorageHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(start={self._start}, end={self._end})"


class _FileResource:
    """An OS file opened read/write, shared by a handle and its slices.

    Reads and writes use positional I/O on the descriptor, so they keep
    working on the same inode after the path is replaced or unlinked.
    """

    def __init__(self, path: Path, file: BinaryIO):
        self.path = path
        self.file = file
        self.lock = asyncio.Lock()

    @property
    def closed(self) -> bool:
        return self.file.closed

    def _fileno(self) -> int:
        if self.file.closed:
            raise StorageIOError("Handle is closed", context={"path": str(self.path)})
        return self.file.fileno()

    def duplicate(self) -> int:
        """New descriptor onto the same open file, for one stream to own."""
        return os.dup(self._fileno())

    def write_at(self, offset: int, data: bytes) -> int:
        fd = self._fileno()
        try:
            return os.pwrite(fd, data, offset)
        except OSError as e:
            raise StorageIOError(
                "Failed to write file", context={"path": str(self.path), "offset": offset}
            ) from e

    @classmethod
    def open(cls, path: Path) -> "_FileResource":
        """Open `path` for reading and writing, creating it if absent without truncating."""
        fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
        return cls(path, os.fdopen(fd, "r+b", buffering=0))


class _StreamReader:
    """Positional reads through a private duplicate of a resource descriptor.

    The duplicate is taken on first read and closed on release, so
    cancelling one stream never closes the handle or its other streams.
    """

    def __init__(self, resource: _FileResource):
        self._resource = resource
        self._fd: int | None = None

    async def read(self, offset: int, size: int) -> bytes:
        if self._fd is None:
            self._fd = self._resource.duplicate()
        try:
            return await asyncio.to_thread(os.pread, self._fd, size, offset)
        except OSError as e:
            raise StorageIOError(
                "Failed to read file",
                context={"path": str(self._resource.path), "offset": offset},
            ) from e

    async def close(self) -> None:
        if self._fd is not None:
            fd, self._fd = self._fd, None
            await asyncio.to_thread(os.close, fd)


class LocalFileHandle(StorageHandle):
    """Handle over a file on the local filesystem.

    Streams and writes go through the descriptor opened with the handle, so
    an open handle keeps seeing the file it opened even if the path is later
    replaced or removed. All I/O is positional, so concurrent streams over
    slices of one file do not share a seek position. Writes are serialised
    per resource.
    """

    def __init__(self, resource: _FileResource, start: int, end: int):
        super().__init__(start, end)
        self._resource = resource
        self._position = start

    @property
    def path(self) -> Path:
        return self._resource.path

    @property
    def position(self) -> int:
        """Offset the next write lands at."""
        return self._position

    def slice(self, start: int | None = None, end: int | None = None) -> "LocalFileHandle":
        new_start, new_end = self._slice_range(start, end)
        return LocalFileHandle(self._resource, new_start, new_end)

    def stream(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
    ) -> ByteStream:
        reader = _StreamReader(self._resource)
        return ByteStream(
            reader.read,
            self._start,
            self._end,
            release=reader.close,
            chunk_size=chunk_size,
            high_water_mark=high_water_mark,
        )

    async def write(self, data: bytes) -> int:
        async with self._resource.lock:
            written = await asyncio.to_thread(self._resource.write_at, self._position, bytes(data))
        self._position += written
        logger.debug(f"Wrote {written} bytes to {self._resource.path}")
        return written

    async def close(self) -> None:
        if not self._resource.closed:
            await asyncio.to_thread(self._resource.file.close)


class BlobHandle(StorageHandle):
    """Handle over an in-memory blob, such as a file handed over by a host UI."""

    def __init__(self, data: bytes | memoryview, start: int = 0, end: int | None = None):
        view = data if isinstance(data, memoryview) else memoryview(data)
        super().__init__(start, len(view) if end is None else end)
        if self._end > len(view):
            raise ValueError(f"Handle end {self._end} is past blob size {len(view)}")
        self._data = view

    def slice(self, start: int | None = None, end: int | None = None) -> "BlobHandle":
        new_start, new_end = self._slice_range(start, end)
        return BlobHandle(self._data, new_start, new_end)

    def stream(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
    ) -> ByteStream:
        async def read_chunk(offset: int, size: int) -> bytes:
            return self._data[offset : offset + size].tobytes()

        return ByteStream(
            read_chunk,
            self._start,
            self._end,
            chunk_size=chunk_size,
            high_water_mark=high_water_mark,
        )

    async def write(self, data: bytes) -> int:
        raise UnsupportedOperationError("Blob handles are read-only", context={"size": self.size})
