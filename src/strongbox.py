"""Public SDK surface for Strongbox.

This module provides a stable import path for backend users.
It re-exports the lifecycle functions, backend class, and typed models.
"""

from __future__ import annotations

from core.config import StrongboxConfig
from core.errors import (
    StrongboxAlreadyExistsError,
    StrongboxBackendError,
    StrongboxConfigError,
    StrongboxError,
    StrongboxHandleError,
    StrongboxLayoutError,
    StrongboxNotFoundError,
)
from core.types import FileInfo, FileType, Handle
from store.blob_listing import BlobListing
from store.layout import DefaultLayout, S3LegacyLayout, detect_layout, parse_layout
from store.local_backend import LocalBackend, create_backend, open_backend

__all__ = [
    "BlobListing",
    "DefaultLayout",
    "FileInfo",
    "FileType",
    "Handle",
    "LocalBackend",
    "S3LegacyLayout",
    "StrongboxAlreadyExistsError",
    "StrongboxBackendError",
    "StrongboxConfig",
    "StrongboxConfigError",
    "StrongboxError",
    "StrongboxHandleError",
    "StrongboxLayoutError",
    "StrongboxNotFoundError",
    "create_backend",
    "detect_layout",
    "open_backend",
    "parse_layout",
]
