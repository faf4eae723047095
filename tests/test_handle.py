"""Tests for storage handles."""

from pathlib import Path

import pytest
import pytest_asyncio

from flache.errors import StorageIOError, UnsupportedOperationError
from flache.models.model_stream import StreamState
from flache.storage.handle import BlobHandle, LocalFileHandle
from flache.storage.tree.directory_tree import DirectoryTree


@pytest_asyncio.fixture
async def local_handle(directory_tree: DirectoryTree, hundred_bytes: bytes):
    """Open a handle over a 100-byte file."""
    await directory_tree.write_file("ab/cd/data", hundred_bytes)
    handle = await directory_tree.open_file("ab/cd/data")
    yield handle
    await handle.close()


class TestLocalFileHandle:
    """Tests for LocalFileHandle."""

    @pytest.mark.asyncio
    async def test_slice_stream(self, local_handle: LocalFileHandle, hundred_bytes: bytes) -> None:
        """Test that streaming [10, 20) of a 100-byte file yields bytes 10-19."""
        view = local_handle.slice(10, 20)
        chunks = [chunk async for chunk in view.stream(chunk_size=3)]

        assert view.size == 10
        assert b"".join(chunks) == hundred_bytes[10:20]

    @pytest.mark.asyncio
    async def test_slice_defaults(self, local_handle: LocalFileHandle) -> None:
        """Test that omitted bounds keep the current ones."""
        assert (local_handle.slice().start, local_handle.slice().end) == (0, 100)
        assert (local_handle.slice(30).start, local_handle.slice(30).end) == (30, 100)
        assert (local_handle.slice(end=40).start, local_handle.slice(end=40).end) == (0, 40)

    @pytest.mark.asyncio
    async def test_empty_slice(self, local_handle: LocalFileHandle) -> None:
        """Test that a zero-length slice is allowed."""
        narrow = local_handle.slice(50, 60)
        assert narrow.slice(50, 50).size == 0

    @pytest.mark.asyncio
    async def test_nested_slice_uses_absolute_offsets(
        self, local_handle: LocalFileHandle, hundred_bytes: bytes
    ) -> None:
        """Test that slice offsets address the underlying file, not the view."""
        outer = local_handle.slice(10, 50)
        inner = outer.slice(20, 30)
        assert await inner.read() == hundred_bytes[20:30]

    @pytest.mark.asyncio
    async def test_slice_outside_range(self, local_handle: LocalFileHandle) -> None:
        """Test that a slice cannot widen its parent."""
        outer = local_handle.slice(10, 50)
        with pytest.raises(ValueError):
            outer.slice(5, 20)
        with pytest.raises(ValueError):
            outer.slice(20, 60)
        with pytest.raises(ValueError):
            outer.slice(30, 20)

    @pytest.mark.asyncio
    async def test_slice_shares_resource(self, local_handle: LocalFileHandle) -> None:
        """Test that slicing does not open another file."""
        view = local_handle.slice(10, 20)
        assert view._resource is local_handle._resource
        assert view.path == local_handle.path

    @pytest.mark.asyncio
    async def test_concurrent_streams(
        self, local_handle: LocalFileHandle, hundred_bytes: bytes
    ) -> None:
        """Test interleaving two streams over different slices."""
        first = local_handle.slice(0, 50).stream(chunk_size=5)
        second = local_handle.slice(50, 100).stream(chunk_size=5)
        a, b = [], []

        for _ in range(10):
            a.append(await first.__anext__())
            b.append(await second.__anext__())

        assert b"".join(a) == hundred_bytes[:50]
        assert b"".join(b) == hundred_bytes[50:]
        await first.cancel()
        await second.cancel()

    @pytest.mark.asyncio
    async def test_cancelled_stream_releases_its_descriptor(
        self, local_handle: LocalFileHandle, hundred_bytes: bytes
    ) -> None:
        """Test that cancelling a file stream closes only that stream's descriptor."""
        stream = local_handle.stream(chunk_size=10)
        await stream.__anext__()
        reader = stream._release.__self__

        await stream.cancel()

        assert stream.state is StreamState.CANCELLED
        assert reader._fd is None
        assert not local_handle._resource.closed
        assert await local_handle.slice(0, 10).read() == hundred_bytes[:10]

    @pytest.mark.asyncio
    async def test_stream_after_path_replaced(
        self, local_handle: LocalFileHandle, directory_tree: DirectoryTree, hundred_bytes: bytes
    ) -> None:
        """Test that an open handle keeps reading the file it opened after a rewrite."""
        await directory_tree.write_file("ab/cd/data", b"short")

        assert await local_handle.slice(10, 20).read() == hundred_bytes[10:20]
        assert await directory_tree.read_file("ab/cd/data") == b"short"

    @pytest.mark.asyncio
    async def test_stream_after_path_removed(
        self, local_handle: LocalFileHandle, directory_tree: DirectoryTree, hundred_bytes: bytes
    ) -> None:
        """Test that an open handle still reads after its path is unlinked."""
        await directory_tree.remove_file("ab/cd/data")

        assert await local_handle.slice(10, 20).read() == hundred_bytes[10:20]
        assert not await directory_tree.exists("ab/cd/data")

    @pytest.mark.asyncio
    async def test_write_after_path_replaced_is_seen_by_streams(
        self, local_handle: LocalFileHandle, directory_tree: DirectoryTree
    ) -> None:
        """Test that writes and streams of one handle address the same file."""
        await directory_tree.write_file("ab/cd/data", b"replacement")
        await local_handle.write(b"XY")

        assert await local_handle.slice(0, 4).read() == b"XY\x02\x03"
        assert await directory_tree.read_file("ab/cd/data") == b"replacement"

    @pytest.mark.asyncio
    async def test_write_after_close(self, local_handle: LocalFileHandle) -> None:
        """Test that writing through a closed handle raises StorageIOError."""
        await local_handle.close()

        with pytest.raises(StorageIOError, match="Handle is closed"):
            await local_handle.write(b"late")

    @pytest.mark.asyncio
    async def test_stream_after_close(self, local_handle: LocalFileHandle) -> None:
        """Test that reading through a closed handle raises StorageIOError."""
        await local_handle.close()

        with pytest.raises(StorageIOError):
            await local_handle.read()

    @pytest.mark.asyncio
    async def test_write_os_error_is_wrapped(
        self, local_handle: LocalFileHandle, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that an OS-level write failure surfaces as StorageIOError."""

        def fail(fd: int, data: bytes, offset: int) -> int:
            raise OSError(28, "No space left on device")

        monkeypatch.setattr("flache.storage.handle.os.pwrite", fail)

        with pytest.raises(StorageIOError, match="Failed to write file") as exc_info:
            await local_handle.write(b"data")
        assert isinstance(exc_info.value.__cause__, OSError)
        assert local_handle.position == 0

    @pytest.mark.asyncio
    async def test_stream_is_fresh_each_time(self, local_handle: LocalFileHandle) -> None:
        """Test that each stream() call starts from the handle's start."""
        assert await local_handle.read() == await local_handle.read()

    @pytest.mark.asyncio
    async def test_write_at_position(
        self, directory_tree: DirectoryTree, cache_root: Path
    ) -> None:
        """Test that writes land at the handle position and advance it."""
        async with await directory_tree.open_file("ab/cd/log") as handle:
            assert await handle.write(b"hello ") == 6
            assert await handle.write(b"world") == 5
            assert handle.position == 11
            # Logical size is fixed at open
            assert handle.size == 0

        assert (cache_root / "ab" / "cd" / "log").read_bytes() == b"hello world"

    @pytest.mark.asyncio
    async def test_write_through_slice(
        self, local_handle: LocalFileHandle, directory_tree: DirectoryTree, hundred_bytes: bytes
    ) -> None:
        """Test that a slice writes from its own start."""
        await local_handle.slice(10, 20).write(b"XXXX")

        data = await directory_tree.read_file("ab/cd/data")
        assert data[10:14] == b"XXXX"
        assert data[:10] == hundred_bytes[:10]
        assert data[14:] == hundred_bytes[14:]

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, local_handle: LocalFileHandle) -> None:
        """Test closing a handle twice."""
        await local_handle.close()
        await local_handle.close()
        assert local_handle._resource.closed


class TestBlobHandle:
    """Tests for BlobHandle."""

    @pytest.mark.asyncio
    async def test_slice_stream(self, hundred_bytes: bytes) -> None:
        """Test streaming a sub-range of an in-memory blob."""
        handle = BlobHandle(hundred_bytes)
        view = handle.slice(10, 20)

        assert handle.size == 100
        assert b"".join([c async for c in view.stream(chunk_size=4)]) == hundred_bytes[10:20]

    @pytest.mark.asyncio
    async def test_read(self, hundred_bytes: bytes) -> None:
        """Test reading the whole blob."""
        assert await BlobHandle(hundred_bytes).read() == hundred_bytes

    @pytest.mark.asyncio
    async def test_write_unsupported(self) -> None:
        """Test that blob handles refuse writes."""
        with pytest.raises(UnsupportedOperationError):
            await BlobHandle(b"data").write(b"more")

    def test_end_past_blob(self) -> None:
        """Test that a range past the blob is rejected."""
        with pytest.raises(ValueError):
            BlobHandle(b"data", 0, 10)

    def test_repr(self) -> None:
        """Test handle repr shows its range."""
        assert repr(BlobHandle(b"data", 1, 3)) == "BlobHandle(start=1, end=3)"
