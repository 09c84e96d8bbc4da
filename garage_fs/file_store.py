"""
HierarchicalFileStore - directory semantics over a flat PathStore.

The store has no directories, so they are emulated:
- every path maps to one entry keyed by its full path ("/a/b")
- a directory is an entry flagged isdirectory whose payload is the
  newline-separated list of its immediate child names
- creating or deleting a child rewrites the parent's listing entry
  wholesale (remove, then create), since the store can't append to or
  update an entry in place

Listing consistency:
    Listing maintenance is read-modify-write. Within one process, handles
    sharing a store object serialize on PathStore.lock_for(parent): the
    parent check and the listing rewrite happen under the parent's lock,
    and an entry is only created, replaced or removed under its own lock.
    Locks are always taken child first, then ancestors.

    Two processes (or two store objects) updating the same parent can still
    interleave, and the later rewrite silently drops the other's change: the
    child entry itself is written or removed correctly, but its name can be
    missing from (or linger in) the parent listing. Closing that gap needs a
    conditional write on the store side, which the blob store doesn't offer.
    Unlocked readers may also briefly see a parent as missing while its
    listing is being replaced.

Deleting a directory does not delete its descendants. Their entries stay in
the store, unreachable through any listing.
"""

import logging
from contextlib import closing
from typing import BinaryIO, Optional

from .errors import (
    AlreadyExistsAsFile,
    IsDirectory,
    NotFound,
    ParentMissing,
    ParentNotDirectory,
)
from .listing import encode_listing, parse_listing
from .models import FileInfo, PathEntry
from .path_store import EntryWriter, PathStore
from .paths import child_path, is_root, normalize_path, parent_path, path_name

log = logging.getLogger(__name__)

SCHEME = "garage"


class HierarchicalFileStore:
    """Handle on one path of a PathStore.

    Construction does no I/O. Every operation goes to the store and may
    block on the network.
    """

    def __init__(self, store: PathStore, path: str):
        self.store = store
        self.path = normalize_path(path)

    def __repr__(self) -> str:
        return f"HierarchicalFileStore({self.path!r}, store={type(self.store).__name__})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, HierarchicalFileStore):
            return NotImplemented
        return self.store is other.store and self.path == other.path

    def __hash__(self) -> int:
        return hash((id(self.store), self.path))

    # ── Navigation ────────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return path_name(self.path)

    @property
    def is_root(self) -> bool:
        return is_root(self.path)

    def get_parent(self) -> Optional["HierarchicalFileStore"]:
        parent = parent_path(self.path)
        if parent is None:
            return None
        return HierarchicalFileStore(self.store, parent)

    def get_child(self, name: str) -> "HierarchicalFileStore":
        return HierarchicalFileStore(self.store, child_path(self.path, name))

    def to_uri(self) -> str:
        return f"{SCHEME}://{self.store.netloc}{self.path}"

    # ── Queries ───────────────────────────────────────────────────────

    def _entry(self) -> Optional[PathEntry]:
        return self.store.find(self.path)

    def get_info(self) -> FileInfo:
        """Report existence, type and length of this path.

        The root always exists: if it has no entry yet, one is created.
        """
        info = FileInfo(name=self.name)
        entry = self._entry()

        if entry is None:
            if not self.is_root:
                return info
            with self.store.lock_for(self.path):
                entry = self._entry()
                if entry is None:
                    log.info(f"Creating root directory entry '{self.path}'")
                    self.store.create_empty(self.path).mark_directory().save()
                    entry = self._entry()
            if entry is None:
                # Store discarded the write (NullPathStore)
                return info

        info.exists = True
        info.length = entry.length
        info.is_directory = entry.is_directory
        return info

    def list_children(self) -> list[str]:
        """Child names in stored order. Empty for files and missing paths."""
        entry = self._entry()
        if entry is None or not entry.is_directory:
            return []
        with closing(self.store.open_read(entry)) as stream:
            return parse_listing(stream.read())

    # ── Mutations ─────────────────────────────────────────────────────

    def create_directory(self, shallow: bool = False) -> "HierarchicalFileStore":
        """Create this directory. A no-op if it already is one.

        Missing parents are created too, unless `shallow` is set.

        Raises:
            AlreadyExistsAsFile: a file exists at this path
            ParentNotDirectory: the parent is a file
            ParentMissing: the parent is missing and `shallow` is set
        """
        entry = self._entry()
        if entry is not None:
            if entry.is_directory:
                return self
            raise AlreadyExistsAsFile(
                f"Couldn't create directory '{self.path}'; a file with this path already exists.",
                self.path,
            )

        parent = self.get_parent()
        if parent is not None:
            with self.store.lock_for(parent.path):
                parent_info = parent.get_info()

                if parent_info.exists and not parent_info.is_directory:
                    raise ParentNotDirectory(
                        f"Couldn't create directory '{self.path}'; path parent is not a directory.",
                        self.path,
                    )

                if not parent_info.exists:
                    if shallow:
                        raise ParentMissing(
                            f"Couldn't create directory '{self.path}'; parent directory does not exist.",
                            self.path,
                        )
                    parent.create_directory(shallow=False)

                self._add_to_parent_listing()

        with self.store.lock_for(self.path):
            # A concurrent child creation may already have written our listing
            if self._entry() is None:
                self.store.create_empty(self.path).mark_directory().save()
                log.debug(f"Created directory '{self.path}'")
        return self

    def open_for_read(self) -> BinaryIO:
        """Open the file's contents for reading.

        Raises:
            NotFound: nothing exists at this path
            IsDirectory: this path is a directory
        """
        entry = self._entry()
        if entry is None:
            raise NotFound(f"Path '{self.path}' does not exist.", self.path)
        if entry.is_directory:
            raise IsDirectory(f"Path '{self.path}' is a directory.", self.path)
        return self.store.open_read(entry)

    def open_for_write(self) -> EntryWriter:
        """Open a stream that replaces the file's contents when closed.

        Any existing file is removed immediately and the name is registered
        in the parent listing; the new entry exists once the stream closes.
        Parents are never created implicitly.

        Raises:
            IsDirectory: this path is a directory (or the root)
            ParentMissing: the parent does not exist
            ParentNotDirectory: the parent is a file
        """
        parent = self.get_parent()
        if parent is None:
            raise IsDirectory(
                f"Couldn't create output stream for '{self.path}'; this path represents a directory.",
                self.path,
            )

        # Lock order: this path, then its parent
        with self.store.lock_for(self.path), self.store.lock_for(parent.path):
            entry = self._entry()
            if entry is not None and entry.is_directory:
                raise IsDirectory(
                    f"Couldn't create output stream for '{self.path}'; this path represents a directory.",
                    self.path,
                )

            parent_info = parent.get_info()
            if not parent_info.exists:
                raise ParentMissing(
                    f"Couldn't create output stream for '{self.path}'; parent does not exist.",
                    self.path,
                )
            if not parent_info.is_directory:
                raise ParentNotDirectory(
                    f"Couldn't create output stream for '{self.path}'; parent is not a directory.",
                    self.path,
                )

            self.store.remove(self.path)
            self._add_to_parent_listing()

        return self.store.open_write(self.path)

    def delete(self) -> None:
        """Remove this path and its name from the parent listing.

        Deleting something that doesn't exist is not an error. Descendants
        of a deleted directory are left in the store.
        """
        with self.store.lock_for(self.path):
            if not self.is_root:
                self._remove_from_parent_listing()
            self.store.remove(self.path)
        log.debug(f"Deleted '{self.path}'")

    def set_info(self, info: FileInfo) -> None:
        """Accepted and ignored; the directory flag is fixed at creation."""

    # ── Parent listing maintenance ────────────────────────────────────

    def _add_to_parent_listing(self) -> None:
        self._update_parent_listing(add=True)

    def _remove_from_parent_listing(self) -> None:
        self._update_parent_listing(add=False)

    def _update_parent_listing(self, add: bool) -> None:
        """Add or remove this name in the parent listing.

        The listing is only rewritten when membership actually changes.
        Names keep their stored order; a new name goes last.
        """
        parent = self.get_parent()
        name = self.name

        with self.store.lock_for(parent.path):
            # dict keeps insertion order and drops duplicate lines
            names = dict.fromkeys(parent.list_children())
            if add:
                if name in names:
                    return
                names[name] = None
            else:
                if name not in names:
                    return
                del names[name]

            self.store.remove(parent.path)
            with self.store.create_empty(parent.path).mark_directory().open_output() as stream:
                stream.write(encode_listing(names))

        log.debug(f"{'Added' if add else 'Removed'} '{name}' in listing of '{parent.path}' ({len(names)} entries)")
