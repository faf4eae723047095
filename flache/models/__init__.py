"""Pydantic models for flache."""

from flache.models.model_config import (
    BackendKind,
    CacheOptions,
    Decoder,
    Encoder,
    HostCapabilities,
)
from flache.models.model_storage import SuppliedFile, TreeStats
from flache.models.model_stream import StreamState

__all__ = [
    # Config models
    "BackendKind",
    "CacheOptions",
    "Decoder",
    "Encoder",
    "HostCapabilities",
    # Storage models
    "SuppliedFile",
    "TreeStats",
    # Stream models
    "StreamState",
]
