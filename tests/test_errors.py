"""Tests for the exception hierarchy."""

import pytest

from flache.errors import (
    EncodingError,
    FlacheError,
    InvalidPathError,
    NotFoundError,
    StorageIOError,
    StreamStateError,
    UnsupportedOperationError,
)


@pytest.mark.parametrize(
    "error_type",
    [
        NotFoundError,
        UnsupportedOperationError,
        EncodingError,
        StorageIOError,
        InvalidPathError,
        StreamStateError,
    ],
)
def test_all_derive_from_flache_error(error_type: type[FlacheError]) -> None:
    """Test that every library error can be caught as FlacheError."""
    assert issubclass(error_type, FlacheError)


def test_str_includes_context() -> None:
    """Test that context is rendered after the message."""
    error = NotFoundError("No such file", context={"path": "ab/cd/ef"})
    assert str(error) == "No such file (path='ab/cd/ef')"
    assert error.message == "No such file"


def test_str_without_context() -> None:
    """Test rendering without context."""
    assert str(StorageIOError("disk full")) == "disk full"


def test_repr() -> None:
    """Test repr shows type, message and context."""
    error = EncodingError("bad", context={"size": 3})
    assert repr(error) == "EncodingError('bad', context={'size': 3})"


def test_builtin_bases() -> None:
    """Test the builtin exception types errors also belong to."""
    assert issubclass(NotFoundError, LookupError)
    assert issubclass(EncodingError, ValueError)
    assert issubclass(InvalidPathError, ValueError)
