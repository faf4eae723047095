"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from flache.models.model_config import CacheOptions
from flache.models.model_storage import SuppliedFile
from flache.storage.cache.sharded_cache import ShardedCache
from flache.storage.tree.directory_tree import DirectoryTree
from flache.storage.tree.file_list_tree import FileListTree


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """Root directory for a cache under test. Not created up front."""
    return tmp_path / "cache"


@pytest.fixture
def directory_tree(cache_root: Path) -> DirectoryTree:
    """Create a DirectoryTree over the temporary cache root."""
    return DirectoryTree(cache_root)


@pytest.fixture
def sharded_cache(cache_root: Path) -> ShardedCache:
    """Create a ShardedCache with default JSON codec."""
    return ShardedCache(CacheOptions(path=str(cache_root)))


@pytest.fixture
def hundred_bytes() -> bytes:
    """100 distinct-per-position bytes."""
    return bytes(range(100))


@pytest.fixture
def supplied_files(hundred_bytes: bytes) -> list[SuppliedFile]:
    """Files as a host UI would hand them over."""
    return [
        SuppliedFile(name="movie.bin", data=hundred_bytes),
        SuppliedFile(name="/notes.txt", data=b"remember the milk"),
    ]


@pytest.fixture
def file_list_tree(supplied_files: list[SuppliedFile]) -> FileListTree:
    """Create a FileListTree pre-populated with supplied files."""
    return FileListTree(supplied_files)
