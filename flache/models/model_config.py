"""Configuration models, resolved once when a cache is built."""

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from flache.consts import DEFAULT_CACHE_PATH
from flache.models.model_storage import SuppliedFile

Encoder = Callable[[Any], bytes | str]
Decoder = Callable[[Any], Any]


class BackendKind(str, Enum):
    """Concrete StorageTree implementations."""

    DIRECTORY = "directory"
    FILE_LIST = "file_list"


class HostCapabilities(BaseModel):
    """What the hosting environment offers for I/O.

    Passed in explicitly instead of being sniffed from the environment, so
    the backend choice is visible in configuration and easy to test.
    """

    model_config = ConfigDict(frozen=True)

    filesystem: bool = Field(default=True, description="A writable local filesystem is available")
    supplied_files: tuple[SuppliedFile, ...] | None = Field(
        default=None,
        description="Files handed over by a host UI. Takes precedence over the filesystem.",
    )


class CacheOptions(BaseModel):
    """Immutable cache configuration.

    encoder/decoder default to compact JSON when left as None.

    The decoder receives the stored bytes unless `encoding` is set, in which
    case it receives them decoded to text. Identity functions alone
    therefore store a str and hand back bytes (b"Hi there"); set
    `encoding="utf-8"`, or use `TEXT_CODEC.options()`, to get the str back.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: str = Field(default=DEFAULT_CACHE_PATH, min_length=1, description="Root directory")
    encoder: Encoder | None = Field(default=None, description="value -> bytes or str")
    decoder: Decoder | None = Field(default=None, description="bytes (or str) -> value")
    encoding: str | None = Field(
        default=None, description="Decode stored bytes to text before handing them to the decoder"
    )
    capabilities: HostCapabilities = Field(default_factory=HostCapabilities)
