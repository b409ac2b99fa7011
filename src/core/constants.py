"""Core constants used across Strongbox modules.

This module centralizes directory names, modes, and defaults.
Keeping values here avoids magic literals in backend logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_REPOSITORY_PATH = Path(".strongbox")
LOCATION_SCHEME = "local"
DEFAULT_LAYOUT_NAME = "default"
S3LEGACY_LAYOUT_NAME = "s3legacy"
SUPPORTED_LAYOUTS = (DEFAULT_LAYOUT_NAME, S3LEGACY_LAYOUT_NAME)
CONFIG_FILE_NAME = "config"
DIRECTORY_MODE = 0o700
FILE_MODE = 0o600
WRITABLE_FILE_MODE = 0o660
WRITE_PERMISSION_BITS = 0o222
COPY_CHUNK_SIZE = 1024 * 1024
SHARD_PREFIX_LENGTH = 2
LISTING_POLL_SECONDS = 0.05
