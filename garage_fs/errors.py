"""
Error taxonomy for filesystem operations.

Every error carries the offending path and an errno, so callers that
surface these through an OS-level interface can map them directly.
"""

import errno
from typing import Optional


class FileStoreError(Exception):
    """Base class for all filesystem operation failures."""

    errno = errno.EIO

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class NotFound(FileStoreError):
    """Read or open targets a path with no entry."""
    errno = errno.ENOENT


class IsDirectory(FileStoreError):
    """File operation targets a directory."""
    errno = errno.EISDIR


class IsFile(FileStoreError):
    """Directory operation targets a file."""
    errno = errno.ENOTDIR


class AlreadyExistsAsFile(IsFile):
    """create_directory() on a path occupied by a file."""
    errno = errno.EEXIST


class ParentMissing(FileStoreError):
    """Write or shallow create under a parent that does not exist."""
    errno = errno.ENOENT


class ParentNotDirectory(FileStoreError):
    """Parent path resolves to a file."""
    errno = errno.ENOTDIR


class StoreUnavailable(FileStoreError):
    """The underlying blob store could not be reached. Not retried here."""
    errno = errno.EIO
