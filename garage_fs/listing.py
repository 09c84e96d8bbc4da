"""
Directory listing encoding.

A directory's payload is UTF-8 text holding one child name per line.
Readers accept "\\n" and "\\r\\n" line endings and ignore empty lines;
the writer emits "\\n"-terminated lines.
"""

import re
from typing import Iterable

_LINE_BREAK = re.compile(r"\r?\n")


def parse_listing(data: bytes) -> list[str]:
    """Parse a listing payload into child names, in stored order."""
    text = data.decode("utf-8")
    return [name for name in _LINE_BREAK.split(text) if name]


def encode_listing(names: Iterable[str]) -> bytes:
    """Encode child names as a listing payload."""
    return "".join(f"{name}\n" for name in names).encode("utf-8")
