"""Data models for the Garage-backed filesystem."""

from dataclasses import dataclass, field

# User metadata key marking an entry as a directory. S3 lower-cases
# user metadata keys, so the flag is stored lower-case.
IS_DIRECTORY = "isdirectory"


@dataclass
class PathEntry:
    """One stored record: a full path key, its payload size and metadata.

    The payload itself is not held here; read it with PathStore.open_read().
    """
    key: str
    length: int = 0
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_directory(self) -> bool:
        """Absence of the flag means a plain file."""
        return self.metadata.get(IS_DIRECTORY, "").lower() == "true"


@dataclass
class FileInfo:
    """Entry info reported by HierarchicalFileStore.get_info()."""
    name: str
    exists: bool = False
    is_directory: bool = False
    length: int = 0
