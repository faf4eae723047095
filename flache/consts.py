# Root directory used when no path is configured
DEFAULT_CACHE_PATH = "cache"

# Shard layout: "{digest[:2]}/{digest[2:4]}/{digest}"
SHARD_PREFIX_WIDTH = 2
SHARD_LEVELS = 2  # Digest is SHA-1, 40 hex chars

# Streaming
DEFAULT_CHUNK_SIZE = 64 * 1024  # Bytes read from the source per pull
DEFAULT_HIGH_WATER_MARK = 4  # Chunks buffered before the producer pauses

# Text encoding used for str keys and str encoder output
KEY_ENCODING = "utf-8"
DEFAULT_TEXT_ENCODING = "utf-8"

# Suffix for in-flight writes, replaced atomically into place
TEMP_FILE_SUFFIX = ".tmp"
