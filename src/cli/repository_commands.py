"""Repository lifecycle commands for Strongbox CLI."""

from __future__ import annotations

import argparse
import json
import uuid
from typing import Any

from core.config import StrongboxConfig
from core.types import FileType, Handle
from store.local_backend import create_backend, open_backend

REPOSITORY_CONFIG_VERSION = 1


def add_repository_commands(subparsers: Any) -> None:
    """Register init and destroy subcommands."""
    subparsers.add_parser("init", help="Create a new repository and its config blob")
    parser = subparsers.add_parser("destroy", help="Delete the repository and every blob")
    parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm irreversible deletion",
    )


def run_init_command(config: StrongboxConfig) -> int:
    """Create directories, write the config blob, and print the location."""
    backend = create_backend(config)
    payload = {"version": REPOSITORY_CONFIG_VERSION, "id": uuid.uuid4().hex}
    encoded = (json.dumps(payload, sort_keys=True) + "\n").encode("utf-8")
    backend.save(Handle(FileType.CONFIG), encoded)
    print(f"created repository at {backend.location()}")
    return 0


def run_destroy_command(config: StrongboxConfig, args: argparse.Namespace) -> int:
    """Delete the whole repository when confirmed."""
    if not args.yes:
        print("refusing to destroy repository without --yes")
        return 2
    backend = open_backend(config)
    backend.delete()
    print(f"deleted repository at {backend.location()}")
    return 0
