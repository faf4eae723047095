"""
Exception hierarchy for flache.

All exceptions inherit from FlacheError, which carries an optional
structured context for logging and debugging.

Only NotFoundError is ever recovered inside the library (a cache miss
on get, a no-op on delete). Everything else surfaces to the caller.
"""

from __future__ import annotations

from typing import Any


class FlacheError(Exception):
    """Base exception for all flache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(FlacheError, LookupError):
    """Raised when a requested path does not exist in a storage tree.

    Context should include:
        - path: The relative path that was requested
    """

    pass


class UnsupportedOperationError(FlacheError):
    """Raised when a backend cannot perform the requested operation.

    Examples:
        - Writing to a FileListTree (entries are supplied from outside)
        - Writing through a handle over an in-memory blob
    """

    pass


class EncodingError(FlacheError, ValueError):
    """Raised by the built-in codecs on values they cannot (de)serialise.

    Errors raised by caller-supplied encoders and decoders are never
    wrapped in this type; they propagate unchanged.
    """

    pass


class StorageIOError(FlacheError):
    """Raised when the underlying storage fails for a reason other than absence.

    Always chained to the original OSError (disk full, permission denied, ...).
    """

    pass


class InvalidPathError(FlacheError, ValueError):
    """Raised when a relative path is empty or escapes the tree root."""

    pass


class StreamStateError(FlacheError):
    """Raised when a stream is used in a way its current state does not allow."""

    pass
