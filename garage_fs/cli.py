"""
garage-fs command line.

Commands: stat, ls, mkdir, cat, put, rm.

Usage:
    garage-fs mkdir garage://localhost:3900/notes/2024
    echo hello | garage-fs put /notes/2024/hello.txt
    garage-fs ls /notes/2024
"""

import argparse
import logging
import os
import shutil
import sys
from argparse import Namespace
from contextlib import closing
from typing import Optional

from .config import load_config
from .errors import FileStoreError
from .filesystem import GarageFileSystem

log = logging.getLogger(__name__)


# --- ANSI formatting helpers ---

def _supports_color() -> bool:
    """Check if terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
        return False
    return True

def _bold(text: str) -> str:
    return f"\033[1m{text}\033[0m" if _supports_color() else text


# --- Commands ---

def cmd_stat(fs: GarageFileSystem, args: Namespace) -> None:
    handle = fs.get_store(args.uri)
    info = handle.get_info()
    if not info.exists:
        print(f"{handle.path}: does not exist")
    elif info.is_directory:
        print(f"{handle.path}: directory ({info.length} bytes listing)")
    else:
        print(f"{handle.path}: file, {info.length} bytes")


def cmd_ls(fs: GarageFileSystem, args: Namespace) -> None:
    handle = fs.get_store(args.uri)
    for name in handle.list_children():
        if handle.get_child(name).get_info().is_directory:
            print(_bold(f"{name}/"))
        else:
            print(name)


def cmd_mkdir(fs: GarageFileSystem, args: Namespace) -> None:
    fs.get_store(args.uri).create_directory(shallow=args.shallow)


def cmd_cat(fs: GarageFileSystem, args: Namespace) -> None:
    with closing(fs.get_store(args.uri).open_for_read()) as stream:
        shutil.copyfileobj(stream, sys.stdout.buffer)
    sys.stdout.buffer.flush()


def cmd_put(fs: GarageFileSystem, args: Namespace) -> None:
    handle = fs.get_store(args.uri)
    if args.file:
        with open(args.file, "rb") as source, handle.open_for_write() as out:
            shutil.copyfileobj(source, out)
    else:
        with handle.open_for_write() as out:
            shutil.copyfileobj(sys.stdin.buffer, out)


def cmd_rm(fs: GarageFileSystem, args: Namespace) -> None:
    fs.get_store(args.uri).delete()


COMMANDS = {
    "stat": cmd_stat,
    "ls": cmd_ls,
    "mkdir": cmd_mkdir,
    "cat": cmd_cat,
    "put": cmd_put,
    "rm": cmd_rm,
}


def parse_args(argv: Optional[list[str]] = None) -> Namespace:
    parser = argparse.ArgumentParser(
        prog="garage-fs",
        description="Browse and edit a Garage bucket as a directory tree",
    )
    parser.add_argument("--host", help="Garage host (default: from config, localhost)")
    parser.add_argument("--port", type=int, help="Garage S3 port (default: from config, 3900)")
    parser.add_argument("--bucket", help="Bucket holding the filesystem")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("stat", help="Show whether a path exists and its type")
    p.add_argument("uri")

    p = sub.add_parser("ls", help="List a directory")
    p.add_argument("uri", nargs="?", default="/")

    p = sub.add_parser("mkdir", help="Create a directory (and missing parents)")
    p.add_argument("--shallow", action="store_true", help="Fail if the parent does not exist")
    p.add_argument("uri")

    p = sub.add_parser("cat", help="Write a file's contents to stdout")
    p.add_argument("uri")

    p = sub.add_parser("put", help="Write a file from FILE or stdin")
    p.add_argument("uri")
    p.add_argument("file", nargs="?", help="Local file to upload (default: stdin)")

    p = sub.add_parser("rm", help="Delete a file or directory entry")
    p.add_argument("uri")

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {
        "default_host": args.host,
        "default_port": args.port,
        "bucket": args.bucket,
    }
    config = load_config(overrides={k: v for k, v in overrides.items() if v is not None})

    with GarageFileSystem(config) as fs:
        try:
            COMMANDS[args.command](fs, args)
        except FileStoreError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
