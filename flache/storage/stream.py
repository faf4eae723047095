"""Backpressure-aware pull stream over a byte range.

A ByteStream is a finite, non-restartable async iterator of byte chunks.
A producer task reads the source one chunk at a time and hands chunks to
the consumer through a queue. Consumer demand is the free room in that
queue (`desired_size`): when it reaches zero the producer pauses before
touching the source again, and it resumes as soon as the consumer pulls.

State machine:
    IDLE --first pull--> DEMANDING <--demand closes/reopens--> PAUSED
    DEMANDING/PAUSED --end of range seen by consumer--> CLOSED
    any non-terminal --cancel()--> CANCELLED

The source is released exactly once, on CLOSED, on CANCELLED, or when the
source read fails.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from flache.consts import DEFAULT_CHUNK_SIZE, DEFAULT_HIGH_WATER_MARK
from flache.errors import StreamStateError
from flache.models.model_stream import StreamState

logger = logging.getLogger(__name__)

# (offset, size) -> up to `size` bytes starting at `offset`, b"" at end of source
ChunkReader = Callable[[int, int], Awaitable[bytes]]
Releaser = Callable[[], Awaitable[None]]

_END = object()


class _SourceFailure:
    """Wraps an error raised by the source so the consumer can re-raise it."""

    __slots__ = ("error",)

    def __init__(self, error: BaseException):
        self.error = error


class ByteStream:
    """Pull-based stream of the bytes in `[start, end)` of some source."""

    def __init__(
        self,
        read_chunk: ChunkReader,
        start: int,
        end: int,
        release: Releaser | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        high_water_mark: int = DEFAULT_HIGH_WATER_MARK,
    ):
        """Initialize ByteStream.

        Args:
            read_chunk: Coroutine function reading from the source.
            start: First offset to read.
            end: Offset to stop before.
            release: Coroutine function closing the source. Called once.
            chunk_size: Maximum bytes requested from the source per read.
            high_water_mark: Chunks the consumer may have buffered before
                the producer pauses.
        """
        if start < 0 or end < start:
            raise ValueError(f"Invalid stream range [{start}, {end})")
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if high_water_mark <= 0:
            raise ValueError(f"high_water_mark must be positive, got {high_water_mark}")

        self.start = start
        self.end = end
        self.chunk_size = chunk_size
        self.high_water_mark = high_water_mark
        self._read_chunk = read_chunk
        self._release = release
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._demand = asyncio.Event()
        self._producer: asyncio.Task | None = None
        self._state = StreamState.IDLE
        self._released = False
        self.bytes_delivered = 0

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def desired_size(self) -> int:
        """Chunks the consumer is still willing to buffer. Zero or less pauses the producer."""
        if self._state.is_terminal:
            return 0
        return self.high_water_mark - self._queue.qsize()

    def _set_state(self, state: StreamState) -> None:
        if self._state.is_terminal or state is self._state:
            return
        logger.debug(f"Stream [{self.start}, {self.end}): {self._state.value} -> {state.value}")
        self._state = state

    # === CONSUMER SIDE ===

    def __aiter__(self) -> "ByteStream":
        return self

    async def __anext__(self) -> bytes:
        if self._state.is_terminal:
            raise StopAsyncIteration
        if self._producer is None:
            self._set_state(StreamState.DEMANDING)
            self._producer = asyncio.create_task(self._produce())

        item = await self._queue.get()
        self._demand.set()
        # Cancelled from another task while this one was waiting
        if self._state.is_terminal:
            raise StopAsyncIteration

        if item is _END:
            await self._finish(StreamState.CLOSED)
            raise StopAsyncIteration
        if isinstance(item, _SourceFailure):
            await self._finish(StreamState.CLOSED)
            raise item.error

        self.bytes_delivered += len(item)
        return item

    async def read_all(self) -> bytes:
        """Drain the whole stream into one buffer.

        Raises:
            StreamStateError: If chunks were already pulled or the stream is finished.
        """
        if self._state is not StreamState.IDLE:
            raise StreamStateError(
                "Cannot read a stream that has already started",
                context={"state": self._state.value},
            )
        return b"".join([chunk async for chunk in self])

    async def cancel(self) -> None:
        """Stop producing and release the source. No-op once finished."""
        if self._state.is_terminal:
            return
        await self._finish(StreamState.CANCELLED)

    aclose = cancel

    async def __aenter__(self) -> "ByteStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cancel()

    # === PRODUCER SIDE ===

    async def _wait_for_demand(self) -> None:
        while self.desired_size <= 0:
            self._set_state(StreamState.PAUSED)
            self._demand.clear()
            await self._demand.wait()
        self._set_state(StreamState.DEMANDING)

    async def _produce(self) -> None:
        offset = self.start
        try:
            while offset < self.end:
                await self._wait_for_demand()
                wanted = min(self.chunk_size, self.end - offset)
                chunk = await self._read_chunk(offset, wanted)
                if not chunk:
                    logger.warning(
                        f"Source ended at offset {offset}, before stream end {self.end}"
                    )
                    break
                chunk = bytes(chunk[:wanted])
                offset += len(chunk)
                self._queue.put_nowait(chunk)
            self._queue.put_nowait(_END)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Handed to the consumer, which re-raises it from __anext__
            self._queue.put_nowait(_SourceFailure(e))

    async def _finish(self, state: StreamState) -> None:
        self._set_state(state)
        if self._producer is not None and not self._producer.done():
            self._producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._producer
        while not self._queue.empty():
            self._queue.get_nowait()
        # Wakes a consumer blocked in __anext__
        self._queue.put_nowait(_END)
        await self._release_source()

    async def _release_source(self) -> None:
        if self._released:
            return
        self._released = True
        if self._release is not None:
            await self._release()
        logger.debug(
            f"Stream [{self.start}, {self.end}) released after {self.bytes_delivered} bytes "
            f"({self._state.value})"
        )
