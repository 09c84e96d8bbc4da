"""
PathStore - flat key/value access to PathEntry records.

A store knows nothing about directories. It can look up one entry by its
full path key, create a new entry, stream an entry's payload, and remove an
entry. There is no update-in-place: callers remove an entry before creating
its replacement, and create_empty()/open_write() never check for an entry
already present at the key.

Backends:
- GaragePathStore (garage.py): objects in a Garage S3 bucket
- MemoryPathStore: in-process dict, for local use and tests
- NullPathStore: holds nothing; stands in when a locator can't be resolved
"""

import io
import logging
import threading
from abc import ABC, abstractmethod
from typing import BinaryIO, Callable, Optional

from .errors import NotFound
from .models import IS_DIRECTORY, PathEntry

log = logging.getLogger(__name__)


class EntryWriter:
    """Forward-only write stream that finalizes a new entry on close.

    Bytes are buffered until close(). Closing finalizes exactly once;
    abandon() (or leaving a `with` block through an exception) discards the
    buffer and no entry is created. A writer that is never closed creates
    nothing.
    """

    def __init__(self, key: str, finalize: Callable[[bytes], None]):
        self.key = key
        self._finalize = finalize
        self._buffer = io.BytesIO()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def writable(self) -> bool:
        return not self._closed

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError(f"Write to closed stream for '{self.key}'")
        return self._buffer.write(data)

    def close(self) -> None:
        """Finalize the entry with everything written so far."""
        if self._closed:
            return
        self._closed = True
        data = self._buffer.getvalue()
        self._buffer.close()
        self._finalize(data)

    def abandon(self) -> None:
        """Drop the buffered bytes without finalizing."""
        if self._closed:
            return
        self._closed = True
        self._buffer.close()
        log.debug(f"Abandoned write to '{self.key}'")

    def __enter__(self) -> "EntryWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.abandon()
        else:
            self.close()
        return False


class WritableEntry:
    """A new, not yet saved entry returned by PathStore.create_empty()."""

    def __init__(self, store: "PathStore", key: str):
        self.store = store
        self.key = key
        self.metadata: dict[str, str] = {}

    def mark_directory(self) -> "WritableEntry":
        self.metadata[IS_DIRECTORY] = "true"
        return self

    def save(self) -> None:
        """Finalize with an empty payload."""
        self.store.write_entry(self.key, b"", self.metadata)

    def open_output(self) -> EntryWriter:
        """Stream the payload; the entry is finalized when the stream closes."""
        metadata = dict(self.metadata)
        return EntryWriter(self.key, lambda data: self.store.write_entry(self.key, data, metadata))


class PathStore(ABC):
    """Flat PathEntry storage. The only layer that talks to the blob store."""

    # host:port of the backing endpoint, used when building URIs
    netloc: str = ""

    def __init__(self):
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @abstractmethod
    def find(self, key: str) -> Optional[PathEntry]:
        """Look up the entry at exactly `key`, or None."""

    @abstractmethod
    def open_read(self, entry: PathEntry) -> BinaryIO:
        """Open a forward-only read stream over the entry's payload."""

    @abstractmethod
    def write_entry(self, key: str, data: bytes, metadata: dict[str, str]) -> None:
        """Finalize a new entry at `key` with the given payload and metadata."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete the entry at `key`. No-op if absent."""

    def create_empty(self, key: str) -> WritableEntry:
        return WritableEntry(self, key)

    def open_write(self, key: str, metadata: Optional[dict[str, str]] = None) -> EntryWriter:
        """Open a write stream; closing it finalizes a new entry at `key`."""
        metadata = dict(metadata or {})
        return EntryWriter(key, lambda data: self.write_entry(key, data, metadata))

    def lock_for(self, key: str) -> threading.RLock:
        """Process-wide reentrant mutex for one key.

        Only serializes callers sharing this store object. Other processes
        writing the same bucket are not excluded.
        """
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    def close(self) -> None:
        """Release backend resources."""


class MemoryPathStore(PathStore):
    """Thread-safe in-process store."""

    def __init__(self):
        super().__init__()
        self._entries: dict[str, tuple[bytes, dict[str, str]]] = {}
        self._guard = threading.Lock()

    def find(self, key: str) -> Optional[PathEntry]:
        with self._guard:
            record = self._entries.get(key)
        if record is None:
            return None
        data, metadata = record
        return PathEntry(key=key, length=len(data), metadata=dict(metadata))

    def open_read(self, entry: PathEntry) -> BinaryIO:
        with self._guard:
            record = self._entries.get(entry.key)
        if record is None:
            raise NotFound(f"Path '{entry.key}' does not exist.", entry.key)
        return io.BytesIO(record[0])

    def write_entry(self, key: str, data: bytes, metadata: dict[str, str]) -> None:
        with self._guard:
            self._entries[key] = (bytes(data), dict(metadata))
        log.debug(f"Stored entry: {key} ({len(data)} bytes)")

    def remove(self, key: str) -> None:
        with self._guard:
            removed = self._entries.pop(key, None)
        if removed is not None:
            log.debug(f"Deleted entry: {key}")

    def keys(self) -> list[str]:
        """All stored keys, sorted."""
        with self._guard:
            return sorted(self._entries)


class NullPathStore(PathStore):
    """A store that holds nothing.

    Lookups find nothing, writes are discarded and removes do nothing, so a
    handle over it behaves like an empty, read-only filesystem.
    """

    def __init__(self, uri: str = ""):
        super().__init__()
        self.uri = uri

    def find(self, key: str) -> Optional[PathEntry]:
        return None

    def open_read(self, entry: PathEntry) -> BinaryIO:
        raise NotFound(f"Path '{entry.key}' does not exist.", entry.key)

    def write_entry(self, key: str, data: bytes, metadata: dict[str, str]) -> None:
        log.debug(f"Discarding {len(data)} bytes for '{key}' (no store for {self.uri or 'locator'})")

    def remove(self, key: str) -> None:
        pass
