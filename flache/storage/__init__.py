"""Storage backends for the cache.

This module provides:
- StorageHandle: Range-bounded view onto a resource, with pull streams
- StorageTree: Abstract path -> resource namespace
- DirectoryTree: Filesystem-backed tree
- FileListTree: Read-only tree over files supplied by a host UI
- Cache: Abstract base class for caching
- ShardedCache: Content-addressed cache over any StorageTree
"""

from flache.storage.cache.base import Cache
from flache.storage.cache.sharded_cache import ShardedCache, key_to_path
from flache.storage.handle import BlobHandle, LocalFileHandle, StorageHandle
from flache.storage.stream import ByteStream
from flache.storage.tree.base import StorageTree
from flache.storage.tree.directory_tree import DirectoryTree
from flache.storage.tree.file_list_tree import FileListTree
from flache.storage.tree.selector import open_tree, select_backend

__all__ = [
    "BlobHandle",
    "ByteStream",
    "Cache",
    "DirectoryTree",
    "FileListTree",
    "LocalFileHandle",
    "ShardedCache",
    "StorageHandle",
    "StorageTree",
    "key_to_path",
    "open_tree",
    "select_backend",
]
