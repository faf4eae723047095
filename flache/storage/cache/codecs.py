"""Encoder/decoder pairs for cache entries.

The default codec writes compact JSON as UTF-8, laid out the way
`JSON.stringify` lays it out (no whitespace), so caches written by other
implementations of this layout stay readable.
"""

import json
from dataclasses import dataclass
from typing import Any

from flache.errors import EncodingError
from flache.models.model_config import CacheOptions, Decoder, Encoder


def json_encode(value: Any) -> bytes:
    """Serialize a value to compact UTF-8 JSON.

    Raises:
        EncodingError: If the value is not JSON-serializable.
    """
    try:
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise EncodingError(
            "Value is not JSON-serializable", context={"type": type(value).__name__}
        ) from e
    return text.encode("utf-8")


def json_decode(raw: bytes | str) -> Any:
    """Parse JSON from bytes or text.

    Raises:
        EncodingError: If the content is not valid JSON.
    """
    try:
        return json.loads(raw)
    except ValueError as e:
        raise EncodingError("Stored entry is not valid JSON", context={"size": len(raw)}) from e


def identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class Codec:
    """A named encoder/decoder pair plus the text encoding it expects."""

    name: str
    encoder: Encoder
    decoder: Decoder
    encoding: str | None = None

    def options(self, **overrides: Any) -> CacheOptions:
        """Build CacheOptions using this codec.

        Any field, including encoder, decoder and encoding, may be overridden.
        """
        fields = {"encoder": self.encoder, "decoder": self.decoder, "encoding": self.encoding}
        return CacheOptions(**{**fields, **overrides})


JSON_CODEC = Codec("json", json_encode, json_decode)
# Stores str values as-is; get() hands back the same str
TEXT_CODEC = Codec("text", identity, identity, encoding="utf-8")
# Stores bytes values as-is
RAW_CODEC = Codec("raw", identity, identity)

CODECS = {codec.name: codec for codec in (JSON_CODEC, TEXT_CODEC, RAW_CODEC)}
