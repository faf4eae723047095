"""Pick a storage tree from the host's declared capabilities."""

import logging

from flache.errors import UnsupportedOperationError
from flache.models.model_config import BackendKind, CacheOptions, HostCapabilities
from flache.storage.tree.base import StorageTree
from flache.storage.tree.directory_tree import DirectoryTree
from flache.storage.tree.file_list_tree import FileListTree

logger = logging.getLogger(__name__)


def select_backend(capabilities: HostCapabilities) -> BackendKind:
    """Choose the backend kind for a host.

    Supplied files win over the filesystem: a host that hands files over
    expects the cache to serve exactly those.

    Raises:
        UnsupportedOperationError: If the host offers no usable storage.
    """
    if capabilities.supplied_files is not None:
        return BackendKind.FILE_LIST
    if capabilities.filesystem:
        return BackendKind.DIRECTORY
    raise UnsupportedOperationError(
        "Host offers neither a filesystem nor supplied files",
        context={"filesystem": capabilities.filesystem},
    )


def open_tree(options: CacheOptions) -> StorageTree:
    """Build the storage tree described by `options`."""
    kind = select_backend(options.capabilities)
    logger.debug(f"Selected {kind.value} backend")
    if kind is BackendKind.FILE_LIST:
        return FileListTree(options.capabilities.supplied_files or ())
    return DirectoryTree(options.path)
