"""Shared test helpers for the garage-fs test suite."""

from garage_fs.file_store import HierarchicalFileStore


def write_file(handle: HierarchicalFileStore, data: bytes) -> None:
    """Write `data` as the full contents of `handle` and finalize it."""
    stream = handle.open_for_write()
    stream.write(data)
    stream.close()


def read_file(handle: HierarchicalFileStore) -> bytes:
    stream = handle.open_for_read()
    try:
        return stream.read()
    finally:
        stream.close()
