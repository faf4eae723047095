"""Content-addressed cache over a storage tree.

Each key is hashed with SHA-1 and stored at a two-level sharded path, so
no directory ever holds more than 256 subdirectories:

    {root}/
    ├── aa/
    │   └── f4/
    │       └── aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d   ("hello")
    └── ...

Entries carry no metadata. Whatever the encoder produces is the whole
file, and the filesystem alone decides their lifetime.
"""

import asyncio
import hashlib
import logging
import tempfile
from typing import Any

from flache.consts import DEFAULT_TEXT_ENCODING, KEY_ENCODING, SHARD_LEVELS, SHARD_PREFIX_WIDTH
from flache.errors import EncodingError, NotFoundError
from flache.models.model_config import CacheOptions
from flache.storage.cache.base import Cache
from flache.storage.cache.codecs import TEXT_CODEC, json_decode, json_encode
from flache.storage.tree.base import StorageTree
from flache.storage.tree.selector import open_tree

logger = logging.getLogger(__name__)


def key_to_path(key: str | bytes) -> str:
    """Derive the shard path for a key.

    str keys are hashed as UTF-8, bytes keys as-is.

    Args:
        key: Cache key.

    Returns:
        "{h0}/{h1}/{h}" where h is the 40-char lowercase SHA-1 hex digest.

    Raises:
        TypeError: If the key is neither str nor bytes.
    """
    if isinstance(key, str):
        raw = key.encode(KEY_ENCODING)
    elif isinstance(key, (bytes, bytearray, memoryview)):
        raw = bytes(key)
    else:
        raise TypeError(f"Cache keys must be str or bytes, got {type(key).__name__}")

    digest = hashlib.sha1(raw, usedforsecurity=False).hexdigest()
    levels = [
        digest[i * SHARD_PREFIX_WIDTH : (i + 1) * SHARD_PREFIX_WIDTH] for i in range(SHARD_LEVELS)
    ]
    return "/".join([*levels, digest])


class ShardedCache(Cache):
    """Key-value cache storing each entry as one file under a sharded path.

    Configuration is fixed at construction. There are no setters for the
    encoder or decoder; build a new cache to change them.
    """

    def __init__(self, options: CacheOptions | None = None, tree: StorageTree | None = None):
        """Initialize ShardedCache.

        Args:
            options: Cache configuration. Defaults to JSON entries under "cache".
            tree: Storage tree to use. When None, one is chosen from
                `options.capabilities`.
        """
        self._options = options if options is not None else CacheOptions()
        self._encoder = self._options.encoder or json_encode
        self._decoder = self._options.decoder or json_decode
        self._tree = tree if tree is not None else open_tree(self._options)

    @property
    def options(self) -> CacheOptions:
        return self._options

    @property
    def tree(self) -> StorageTree:
        return self._tree

    def path_for(self, key: str | bytes) -> str:
        """Shard path an entry for `key` is stored at, relative to the tree root."""
        return key_to_path(key)

    def _encode(self, value: Any) -> bytes:
        encoded = self._encoder(value)
        if isinstance(encoded, str):
            return encoded.encode(self._options.encoding or DEFAULT_TEXT_ENCODING)
        if isinstance(encoded, (bytes, bytearray, memoryview)):
            return bytes(encoded)
        raise EncodingError(
            "Encoder must return bytes or str", context={"type": type(encoded).__name__}
        )

    async def get(self, key: str | bytes) -> Any | None:
        path = key_to_path(key)
        try:
            raw = await self._tree.read_file(path)
        except NotFoundError:
            logger.debug(f"Cache miss for key={key!r} ({path})")
            return None

        logger.debug(f"Cache hit for key={key!r} ({path}, {len(raw)} bytes)")
        if self._options.encoding is not None:
            return self._decoder(raw.decode(self._options.encoding))
        return self._decoder(raw)

    async def set(self, key: str | bytes, value: Any) -> None:
        path = key_to_path(key)
        data = self._encode(value)
        await self._tree.write_file(path, data)
        logger.debug(f"Cached key={key!r} at {path} ({len(data)} bytes)")

    async def delete(self, key: str | bytes) -> None:
        path = key_to_path(key)
        try:
            await self._tree.remove_file(path)
        except NotFoundError:
            logger.debug(f"Nothing to delete for key={key!r} ({path})")
            return
        logger.debug(f"Deleted key={key!r} ({path})")

    async def close(self) -> None:
        await self._tree.close()

    def __repr__(self) -> str:
        return f"ShardedCache(tree={self._tree!r})"


def main() -> None:
    """Example usage of ShardedCache."""
    logging.basicConfig(level=logging.DEBUG)

    async def run(root: str) -> None:
        print("=== ShardedCache Example ===\n")

        # Default JSON entries
        print("1. Storing a JSON value...")
        kv = ShardedCache(CacheOptions(path=root))
        await kv.set("og", {"says": "Hi there"})
        print(f"   og = {await kv.get('og')}")
        print(f"   stored at {kv.path_for('og')}")

        # Raw strings, no JSON quoting on disk
        print("\n2. Storing a raw string with the text codec...")
        text_kv = ShardedCache(TEXT_CODEC.options(path=root))
        await text_kv.set("og", "Hi there")
        print(f"   og = {await text_kv.get('og')!r}")

        # Misses and deletes
        print("\n3. Missing keys...")
        print(f"   missing = {await kv.get('missing')}")
        await kv.delete("missing")
        print("   delete('missing') did not raise")

        # Ranged streaming over a stored entry
        print("\n4. Streaming bytes [0, 4) of the entry...")
        async with await kv.tree.open_file(kv.path_for("og")) as handle:
            chunks = [chunk async for chunk in handle.slice(0, 4).stream()]
        print(f"   {b''.join(chunks)!r}")

    with tempfile.TemporaryDirectory() as tmpdir:
        asyncio.run(run(tmpdir))


if __name__ == "__main__":
    main()
