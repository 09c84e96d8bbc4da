"""
garage-fs - a directory tree over a flat Garage (S3) bucket.

Layers:
- PathStore (path_store.py, garage.py) - one entry per full path key;
  find, create, read, remove. No notion of directories.
- HierarchicalFileStore (file_store.py) - directories as entries whose
  payload lists their child names; info, listing, mkdir, read/write
  streams, delete.
- GarageFileSystem (filesystem.py) - garage://host:port/path locators to
  handles, with one shared store per endpoint (connections.py).
"""

from .errors import (
    AlreadyExistsAsFile,
    FileStoreError,
    IsDirectory,
    IsFile,
    NotFound,
    ParentMissing,
    ParentNotDirectory,
    StoreUnavailable,
)
from .file_store import HierarchicalFileStore
from .filesystem import GarageFileSystem
from .models import FileInfo, PathEntry
from .path_store import MemoryPathStore, NullPathStore, PathStore

__all__ = [
    "AlreadyExistsAsFile",
    "FileInfo",
    "FileStoreError",
    "GarageFileSystem",
    "HierarchicalFileStore",
    "IsDirectory",
    "IsFile",
    "MemoryPathStore",
    "NotFound",
    "NullPathStore",
    "ParentMissing",
    "ParentNotDirectory",
    "PathEntry",
    "PathStore",
    "StoreUnavailable",
]
