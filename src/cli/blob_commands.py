"""Blob commands for Strongbox CLI.

Each handler opens the repository, runs one backend call, and prints
plain rows to stdout.
"""

from __future__ import annotations

import argparse
import hashlib
import shutil
import sys
from pathlib import Path
from typing import Any

from core.config import StrongboxConfig
from core.constants import COPY_CHUNK_SIZE
from core.types import FileType, Handle
from store.local_backend import open_backend


def add_blob_commands(subparsers: Any) -> None:
    """Register put, cat, stat, ls and rm subcommands."""
    type_choices = [item.value for item in FileType]

    parser = subparsers.add_parser("put", help="Store a local file as a blob")
    parser.add_argument("type", choices=type_choices, help="Blob type")
    parser.add_argument("file", help="Local file to store")
    parser.add_argument("--name", help="Blob name; defaults to the SHA-256 of the content")

    parser = subparsers.add_parser("cat", help="Write blob content to stdout")
    _add_handle_arguments(parser, type_choices)
    parser.add_argument("--offset", type=int, default=0, help="Start byte offset")
    parser.add_argument("--length", type=int, default=0, help="Bytes to read, 0 for all")

    parser = subparsers.add_parser("stat", help="Print blob size")
    _add_handle_arguments(parser, type_choices)

    parser = subparsers.add_parser("ls", help="List blob names of one type")
    parser.add_argument("type", choices=type_choices, help="Blob type")

    parser = subparsers.add_parser("rm", help="Remove one blob")
    _add_handle_arguments(parser, type_choices)


def run_put_command(config: StrongboxConfig, args: argparse.Namespace) -> int:
    """Save a local file and print the blob name."""
    backend = open_backend(config)
    source_path = Path(args.file)
    name = args.name or _sha256_file(source_path)
    handle = Handle(FileType.parse(args.type), name)
    with source_path.open("rb") as source:
        backend.save(handle, source)
    print(name)
    return 0


def run_cat_command(config: StrongboxConfig, args: argparse.Namespace) -> int:
    """Stream a blob, or a byte range of it, to stdout."""
    backend = open_backend(config)
    handle = _handle_from_args(args)
    sys.stdout.flush()
    with backend.load(handle, length=args.length, offset=args.offset) as stream:
        shutil.copyfileobj(stream, sys.stdout.buffer, COPY_CHUNK_SIZE)
    sys.stdout.buffer.flush()
    return 0


def run_stat_command(config: StrongboxConfig, args: argparse.Namespace) -> int:
    """Print blob size as a key=value row."""
    backend = open_backend(config)
    info = backend.stat(_handle_from_args(args))
    print(f"size={info.size}")
    return 0


def run_ls_command(config: StrongboxConfig, args: argparse.Namespace) -> int:
    """Print blob names of one type in sorted order."""
    backend = open_backend(config)
    with backend.list(FileType.parse(args.type)) as listing:
        names = sorted(listing)
    for name in names:
        print(name)
    return 0


def run_rm_command(config: StrongboxConfig, args: argparse.Namespace) -> int:
    """Remove one blob."""
    backend = open_backend(config)
    handle = _handle_from_args(args)
    backend.remove(handle)
    print(f"removed {handle}")
    return 0


def _add_handle_arguments(parser: argparse.ArgumentParser, type_choices: list[str]) -> None:
    parser.add_argument("type", choices=type_choices, help="Blob type")
    parser.add_argument("name", nargs="?", default="", help="Blob name, omitted for config")


def _handle_from_args(args: argparse.Namespace) -> Handle:
    return Handle(FileType.parse(args.type), args.name)


def _sha256_file(path: Path) -> str:
    """Hash a local file in chunks.

    Args:
        path: File to hash.

    Returns:
        Hex digest used as the content-derived blob name.
    """
    digest = hashlib.sha256()
    with path.open("rb") as source:
        for chunk in iter(lambda: source.read(COPY_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()
