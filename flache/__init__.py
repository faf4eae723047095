"""flache - a persistent, content-addressed key-value cache."""

from flache.errors import (
    EncodingError,
    FlacheError,
    InvalidPathError,
    NotFoundError,
    StorageIOError,
    StreamStateError,
    UnsupportedOperationError,
)
from flache.models import BackendKind, CacheOptions, HostCapabilities, StreamState, SuppliedFile
from flache.storage import (
    ByteStream,
    DirectoryTree,
    FileListTree,
    ShardedCache,
    StorageHandle,
    StorageTree,
    key_to_path,
)
from flache.storage.cache.codecs import JSON_CODEC, RAW_CODEC, TEXT_CODEC


__all__ = [
    "BackendKind",
    "ByteStream",
    "CacheOptions",
    "DirectoryTree",
    "EncodingError",
    "FileListTree",
    "FlacheError",
    "HostCapabilities",
    "InvalidPathError",
    "JSON_CODEC",
    "NotFoundError",
    "RAW_CODEC",
    "ShardedCache",
    "StorageHandle",
    "StorageIOError",
    "StorageTree",
    "StreamState",
    "StreamStateError",
    "SuppliedFile",
    "TEXT_CODEC",
    "UnsupportedOperationError",
    "key_to_path",
]
