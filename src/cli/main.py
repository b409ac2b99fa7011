"""Strongbox CLI entry points.
This module exposes repository and blob commands for a local backend.
It maps argparse commands onto backend calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from cli.blob_commands import (
    add_blob_commands,
    run_cat_command,
    run_ls_command,
    run_put_command,
    run_rm_command,
    run_stat_command,
)
from cli.repository_commands import (
    add_repository_commands,
    run_destroy_command,
    run_init_command,
)
from core.config import StrongboxConfig
from core.constants import SUPPORTED_LAYOUTS
from core.errors import StrongboxError


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="strongbox", description="Strongbox local blob store")
    parser.add_argument("--repo", help="Override STRONGBOX_REPOSITORY for this command")
    parser.add_argument(
        "--layout",
        choices=SUPPORTED_LAYOUTS,
        help="Override STRONGBOX_LAYOUT for this command",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_repository_commands(subparsers)
    add_blob_commands(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Strongbox CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.repo, args.layout)
        return _dispatch(parser, config, args)
    except StrongboxError as error:
        print(f"error={error}")
        return 1
    except OSError as error:
        print(f"error={error.filename or ''}: {error.strerror or error}")
        return 1


def _dispatch(
    parser: argparse.ArgumentParser,
    config: StrongboxConfig,
    args: argparse.Namespace,
) -> int:
    """Route parsed arguments to a command handler."""
    if args.command == "init":
        return run_init_command(config)
    if args.command == "destroy":
        return run_destroy_command(config, args)
    if args.command == "put":
        return run_put_command(config, args)
    if args.command == "cat":
        return run_cat_command(config, args)
    if args.command == "stat":
        return run_stat_command(config, args)
    if args.command == "ls":
        return run_ls_command(config, args)
    if args.command == "rm":
        return run_rm_command(config, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(repo: str | None, layout: str | None) -> StrongboxConfig:
    """Build config with optional repository and layout overrides.

    Args:
        repo: Optional repository path or ``local:`` location.
        layout: Optional layout name.

    Returns:
        Resolved backend configuration.
    """
    config = StrongboxConfig.from_env()
    if repo:
        if repo.startswith("local:"):
            config = StrongboxConfig.from_location(repo, layout=config.layout)
        else:
            config = replace(config, path=Path(repo).expanduser().resolve())
    if layout:
        config = replace(config, layout=layout)
    return config
