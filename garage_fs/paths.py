"""
Path helpers.

Every key in the store is an absolute, trailing-separator-free path.
The root is "/". Segments may not contain line breaks, since directory
listings store one child name per line.
"""

import posixpath
import re
from typing import Optional

SEPARATOR = "/"
ROOT = "/"

_LINE_BREAK = re.compile(r"[\r\n]")


def _check_no_line_break(value: str) -> None:
    if _LINE_BREAK.search(value):
        raise ValueError(f"Path segments can't contain line breaks: {value!r}")


def normalize_path(path: Optional[str]) -> str:
    """Make a path absolute and strip any trailing separator.

    >>> normalize_path("a/b/")
    '/a/b'
    >>> normalize_path("")
    '/'

    Raises:
        ValueError: the path contains "\\r" or "\\n"
    """
    if not path:
        return ROOT
    _check_no_line_break(path)
    return posixpath.normpath(SEPARATOR + path.lstrip(SEPARATOR))


def is_root(path: str) -> bool:
    return path == ROOT


def parent_path(path: str) -> Optional[str]:
    """Parent of a normalized path, or None for the root."""
    if is_root(path):
        return None
    return posixpath.dirname(path)


def path_name(path: str) -> str:
    """Last segment of a normalized path ("" for the root)."""
    return posixpath.basename(path)


def child_path(path: str, name: str) -> str:
    """Append one child name to a normalized path."""
    if not name or SEPARATOR in name or name in (".", ".."):
        raise ValueError(f"Invalid child name {name!r} under '{path}'")
    _check_no_line_break(name)
    if is_root(path):
        return ROOT + name
    return f"{path}{SEPARATOR}{name}"
