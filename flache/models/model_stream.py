from enum import Enum


class StreamState(str, Enum):
    """Lifecycle of a ByteStream.

    IDLE -> DEMANDING on the first pull. DEMANDING <-> PAUSED as consumer
    demand closes and reopens. CLOSED once the range is exhausted and the
    consumer has seen the end. CANCELLED when the consumer gives up early.
    CLOSED and CANCELLED are terminal.
    """

    IDLE = "idle"
    DEMANDING = "demanding"
    PAUSED = "paused"
    CLOSED = "closed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (StreamState.CLOSED, StreamState.CANCELLED)
