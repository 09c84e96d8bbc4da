"""Shared fixtures for garage-fs tests."""

import pytest

from garage_fs.file_store import HierarchicalFileStore
from garage_fs.path_store import MemoryPathStore


@pytest.fixture
def store() -> MemoryPathStore:
    """Fresh, empty in-memory store per test."""
    return MemoryPathStore()


@pytest.fixture
def fs_path(store):
    """Factory: fs_path("/a/b") -> handle on the shared test store."""
    def _make(path: str) -> HierarchicalFileStore:
        return HierarchicalFileStore(store, path)
    return _make
