"""Storage trees: path -> resource namespaces backing a cache."""

from flache.storage.tree.base import StorageTree
from flache.storage.tree.directory_tree import DirectoryTree
from flache.storage.tree.file_list_tree import FileListTree
from flache.storage.tree.selector import open_tree, select_backend

__all__ = [
    "DirectoryTree",
    "FileListTree",
    "StorageTree",
    "open_tree",
    "select_backend",
]
