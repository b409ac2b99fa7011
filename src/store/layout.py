"""Repository directory layouts.

This module maps blob handles onto filesystem paths.
The backend delegates all path construction to a layout object.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Protocol

from core.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_LAYOUT_NAME,
    S3LEGACY_LAYOUT_NAME,
    SHARD_PREFIX_LENGTH,
)
from core.errors import StrongboxLayoutError
from core.types import FileType, Handle

_DEFAULT_TYPE_DIRS: Mapping[FileType, str] = {
    FileType.DATA: "data",
    FileType.SNAPSHOT: "snapshots",
    FileType.INDEX: "index",
    FileType.LOCK: "locks",
    FileType.KEY: "keys",
}

_S3LEGACY_TYPE_DIRS: Mapping[FileType, str] = {
    FileType.DATA: "data",
    FileType.SNAPSHOT: "snapshot",
    FileType.INDEX: "index",
    FileType.LOCK: "lock",
    FileType.KEY: "key",
}


class Layout(Protocol):
    """Path mapping consumed by the local backend."""

    @property
    def root(self) -> Path:
        """Repository root directory."""
        ...

    def filename(self, handle: Handle) -> Path:
        """Return the absolute file path for a handle."""
        ...

    def dirname(self, handle: Handle) -> Path:
        """Return the directory holding a handle's file."""
        ...

    def basedir(self, file_type: FileType) -> Path:
        """Return the root directory enumerated for a type."""
        ...

    def is_sharded(self, file_type: FileType) -> bool:
        """Return whether a type is split into shard subdirectories."""
        ...

    def paths(self) -> list[Path]:
        """Return every directory that must exist in a repository."""
        ...


class _TypeDirLayout:
    """Shared mapping logic for layouts keyed by a type directory table."""

    name = ""

    def __init__(self, root: Path, type_dirs: Mapping[FileType, str]) -> None:
        self._root = root
        self._type_dirs = type_dirs

    @property
    def root(self) -> Path:
        return self._root

    def filename(self, handle: Handle) -> Path:
        if handle.type is FileType.CONFIG:
            return self._root / CONFIG_FILE_NAME
        return self.dirname(handle) / handle.name

    def dirname(self, handle: Handle) -> Path:
        if handle.type is FileType.CONFIG:
            return self._root
        base = self.basedir(handle.type)
        if self.is_sharded(handle.type):
            return base / handle.name[:SHARD_PREFIX_LENGTH]
        return base

    def basedir(self, file_type: FileType) -> Path:
        if file_type is FileType.CONFIG:
            return self._root
        return self._root / self._type_dirs[file_type]

    def is_sharded(self, file_type: FileType) -> bool:
        return False

    def paths(self) -> list[Path]:
        return [self._root / dir_name for dir_name in self._type_dirs.values()]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root={str(self._root)!r})"


class DefaultLayout(_TypeDirLayout):
    """Layout with data blobs sharded by the first two name characters.

    ``data/ab/abcdef...``, ``snapshots/<name>``, ``index/<name>``,
    ``locks/<name>``, ``keys/<name>`` and the ``config`` file at the root.
    """

    name = DEFAULT_LAYOUT_NAME

    def __init__(self, root: Path) -> None:
        super().__init__(root, _DEFAULT_TYPE_DIRS)

    def is_sharded(self, file_type: FileType) -> bool:
        return file_type is FileType.DATA

    def paths(self) -> list[Path]:
        data_dir = self.basedir(FileType.DATA)
        shard_dirs = [data_dir / f"{index:02x}" for index in range(256)]
        return [*super().paths(), *shard_dirs]


class S3LegacyLayout(_TypeDirLayout):
    """Flat layout with singular type directory names and no sharding."""

    name = S3LEGACY_LAYOUT_NAME

    def __init__(self, root: Path) -> None:
        super().__init__(root, _S3LEGACY_TYPE_DIRS)


_LAYOUTS = {
    DEFAULT_LAYOUT_NAME: DefaultLayout,
    S3LEGACY_LAYOUT_NAME: S3LegacyLayout,
}


def parse_layout(name: str, default_name: str, root: Path) -> Layout:
    """Resolve a layout by name.

    Args:
        name: Requested layout name; empty runs detection.
        default_name: Layout used when detection fails.
        root: Repository root directory.

    Returns:
        Bound layout instance.

    Raises:
        StrongboxLayoutError: If the name is unknown, or detection fails
            and no default is given.
    """
    if not name:
        try:
            return detect_layout(root)
        except StrongboxLayoutError:
            if not default_name:
                raise
            return parse_layout(default_name, "", root)
    layout_class = _LAYOUTS.get(name)
    if layout_class is None:
        raise StrongboxLayoutError(
            f"Unknown layout '{name}': expected one of {', '.join(sorted(_LAYOUTS))}."
        )
    return layout_class(root)


def detect_layout(root: Path) -> Layout:
    """Detect the layout of an existing repository from its key files.

    Args:
        root: Repository root directory.

    Returns:
        Detected layout instance.

    Raises:
        StrongboxLayoutError: If no unambiguous layout is found.
    """
    found_keys_file = _has_regular_file(root / _DEFAULT_TYPE_DIRS[FileType.KEY])
    found_key_file = _has_regular_file(root / _S3LEGACY_TYPE_DIRS[FileType.KEY])
    if found_keys_file and not found_key_file:
        return DefaultLayout(root)
    if found_key_file and not found_keys_file:
        return S3LegacyLayout(root)
    raise StrongboxLayoutError(
        f"Unable to detect repository layout at {root}. "
        "Pass an explicit layout name."
    )


def _has_regular_file(directory: Path) -> bool:
    try:
        with os.scandir(directory) as entries:
            return any(entry.is_file(follow_symlinks=False) for entry in entries)
    except OSError:
        return False
