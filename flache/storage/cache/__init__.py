"""Caches layered on storage trees."""

from flache.storage.cache.base import Cache
from flache.storage.cache.codecs import CODECS, JSON_CODEC, RAW_CODEC, TEXT_CODEC, Codec
from flache.storage.cache.sharded_cache import ShardedCache, key_to_path

__all__ = [
    "CODECS",
    "Cache",
    "Codec",
    "JSON_CODEC",
    "RAW_CODEC",
    "ShardedCache",
    "TEXT_CODEC",
    "key_to_path",
]
