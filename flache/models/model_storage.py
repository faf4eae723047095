"""Models describing stored resources."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field


class SuppliedFile(BaseModel):
    """A named blob handed to a FileListTree from outside the cache.

    Typically the result of an interactive file pick: the host UI owns the
    bytes, the tree only exposes them by name.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Name the file is looked up by")
    data: bytes = Field(default=b"", description="Full file content")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path | str, name: str | None = None) -> "SuppliedFile":
        """Load a file from disk, named after its basename unless given a name."""
        path = Path(path)
        return cls(name=name or path.name, data=path.read_bytes())


class TreeStats(BaseModel):
    """Summary of the entries stored under a tree root."""

    root: str
    entries: int = Field(default=0, ge=0, description="Number of stored files")
    total_bytes: int = Field(default=0, ge=0, description="Sum of stored file sizes")
    shard_dirs: int = Field(default=0, ge=0, description="Second-level shard directories")
