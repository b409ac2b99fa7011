"""Local filesystem blob backend.

This module stores immutable blobs as files below one repository root.
It owns the create-once write protocol, ranged reads, removal, and
streaming enumeration, and delegates all path mapping to a layout.
"""

from __future__ import annotations

import io
import os
import shutil
import stat as stat_module
import threading
from pathlib import Path
from typing import BinaryIO

from core.config import StrongboxConfig
from core.constants import (
    COPY_CHUNK_SIZE,
    DEFAULT_LAYOUT_NAME,
    DIRECTORY_MODE,
    FILE_MODE,
    WRITABLE_FILE_MODE,
    WRITE_PERMISSION_BITS,
)
from core.errors import (
    StrongboxAlreadyExistsError,
    StrongboxBackendError,
    StrongboxHandleError,
    wrap_os_error,
)
from core.logging_config import get_logger
from core.types import FileInfo, FileType, Handle
from store.blob_listing import BlobListing, walk_flat, walk_sharded
from store.bounded_reader import BoundedReader
from store.layout import Layout, parse_layout

_LOGGER = get_logger(__name__)


def open_backend(config: StrongboxConfig) -> "LocalBackend":
    """Open an existing repository.

    Args:
        config: Repository configuration.

    Returns:
        Backend bound to the resolved layout.

    Raises:
        StrongboxLayoutError: If the layout cannot be resolved.
        StrongboxNotFoundError: If a required directory is missing.
        StrongboxBackendError: If a required directory cannot be checked.
    """
    _LOGGER.debug("backend_open", path=str(config.path), layout=config.layout)
    layout = parse_layout(config.layout, DEFAULT_LAYOUT_NAME, config.path)
    for directory in layout.paths():
        try:
            os.stat(directory)
        except OSError as error:
            raise wrap_os_error("Open", error, directory) from error
    _LOGGER.info("backend_opened", path=str(config.path), layout=type(layout).__name__)
    return LocalBackend(config, layout)


def create_backend(config: StrongboxConfig) -> "LocalBackend":
    """Create the directory structure for a new repository.

    The caller is expected to save the config blob afterwards.

    Args:
        config: Repository configuration.

    Returns:
        Backend bound to the resolved layout.

    Raises:
        StrongboxAlreadyExistsError: If a config blob is already present.
        StrongboxBackendError: If a directory cannot be created.
    """
    _LOGGER.debug("backend_create", path=str(config.path), layout=config.layout)
    layout = parse_layout(config.layout, DEFAULT_LAYOUT_NAME, config.path)
    config_path = layout.filename(Handle(FileType.CONFIG))
    if os.path.lexists(config_path):
        raise StrongboxAlreadyExistsError(
            f"config file already exists at {config_path}", "Create"
        )
    for directory in layout.paths():
        try:
            os.makedirs(directory, DIRECTORY_MODE, exist_ok=True)
        except OSError as error:
            raise wrap_os_error("MkdirAll", error, directory) from error
    _LOGGER.info("backend_created", path=str(config.path), layout=type(layout).__name__)
    return LocalBackend(config, layout)


class LocalBackend:
    """Blob backend rooted in a local directory.

    Instances hold only the configuration and the layout; the filesystem
    is the single source of truth and no call shares in-memory state.
    """

    def __init__(self, config: StrongboxConfig, layout: Layout) -> None:
        self._config = config
        self._layout = layout

    @property
    def layout(self) -> Layout:
        return self._layout

    def location(self) -> str:
        """Return the repository root directory."""
        return str(self._config.path)

    def filename(self, handle: Handle) -> Path:
        """Return the validated file path for a handle."""
        handle.validate()
        return self._layout.filename(handle)

    def save(self, handle: Handle, source: BinaryIO | bytes) -> None:
        """Write a blob exactly once.

        The file is created with create-exclusive semantics, fully written,
        synced, closed and then marked read-only. A failure after creation
        leaves the partial file in place; a later save of the same handle
        fails with ``StrongboxAlreadyExistsError`` until it is removed.

        Args:
            handle: Target blob handle.
            source: Readable binary stream or raw bytes.

        Raises:
            StrongboxHandleError: If the handle is malformed.
            StrongboxAlreadyExistsError: If the blob already exists.
            StrongboxBackendError: If any write phase fails.
        """
        _LOGGER.debug("blob_save", handle=str(handle))
        path = self.filename(handle)
        reader = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source

        if self._layout.is_sharded(handle.type):
            try:
                os.makedirs(path.parent, DIRECTORY_MODE, exist_ok=True)
            except OSError as error:
                raise wrap_os_error("MkdirAll", error, path.parent) from error

        try:
            fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, FILE_MODE)
        except OSError as error:
            raise wrap_os_error("OpenFile", error, path) from error

        blob_file = os.fdopen(fd, "wb")
        try:
            written = _copy_stream(reader, blob_file)
        except OSError as error:
            _close_quietly(blob_file)
            raise wrap_os_error("Write", error, path) from error
        except Exception as error:
            _close_quietly(blob_file)
            raise StrongboxBackendError(f"{path}: {error}", "Write", error) from error

        try:
            blob_file.flush()
            os.fsync(blob_file.fileno())
        except OSError as error:
            _close_quietly(blob_file)
            raise wrap_os_error("Sync", error, path) from error

        try:
            blob_file.close()
        except OSError as error:
            raise wrap_os_error("Close", error, path) from error

        _mark_read_only(path)
        _LOGGER.debug("blob_saved", handle=str(handle), size=written)

    def load(self, handle: Handle, length: int = 0, offset: int = 0) -> BinaryIO:
        """Open a blob for reading.

        Args:
            handle: Blob handle.
            length: Maximum bytes to read; zero reads to the end.
            offset: Byte offset to start reading from.

        Returns:
            Readable stream owned by the caller; close it after use.

        Raises:
            StrongboxHandleError: If the handle or range is invalid.
            StrongboxNotFoundError: If the blob does not exist.
            StrongboxBackendError: If the file cannot be opened or seeked.
        """
        _LOGGER.debug("blob_load", handle=str(handle), length=length, offset=offset)
        path = self.filename(handle)
        if offset < 0:
            raise StrongboxHandleError(f"Invalid offset {offset} for {handle}: offset is negative.")
        if length < 0:
            raise StrongboxHandleError(f"Invalid length {length} for {handle}: length is negative.")

        try:
            blob_file = open(path, "rb")
        except OSError as error:
            raise wrap_os_error("Open", error, path) from error

        if offset > 0:
            try:
                blob_file.seek(offset)
            except OSError as error:
                blob_file.close()
                raise wrap_os_error("Seek", error, path) from error

        if length > 0:
            return BoundedReader(blob_file, length)  # type: ignore[return-value]
        return blob_file

    def stat(self, handle: Handle) -> FileInfo:
        """Return size information for a blob.

        Raises:
            StrongboxHandleError: If the handle is malformed.
            StrongboxNotFoundError: If the blob does not exist.
        """
        path = self.filename(handle)
        try:
            result = os.stat(path)
        except OSError as error:
            raise wrap_os_error("Stat", error, path) from error
        return FileInfo(size=result.st_size)

    def test(self, handle: Handle) -> bool:
        """Return whether a blob exists.

        A missing path, including a missing parent directory, is reported
        as ``False``. Any other stat failure is raised.
        """
        path = self.filename(handle)
        try:
            os.stat(path)
        except FileNotFoundError:
            return False
        except OSError as error:
            raise wrap_os_error("Stat", error, path) from error
        return True

    def remove(self, handle: Handle) -> None:
        """Delete a single blob after restoring its write permission.

        Raises:
            StrongboxHandleError: If the handle is malformed.
            StrongboxNotFoundError: If the blob does not exist.
            StrongboxBackendError: If chmod or unlink fails.
        """
        path = self.filename(handle)
        try:
            os.chmod(path, WRITABLE_FILE_MODE)
        except OSError as error:
            raise wrap_os_error("Chmod", error, path) from error
        try:
            os.remove(path)
        except OSError as error:
            raise wrap_os_error("Remove", error, path) from error
        _LOGGER.info("blob_removed", handle=str(handle))

    def list(self, file_type: FileType, cancel: threading.Event | None = None) -> BlobListing:
        """Stream the names of all blobs of one type.

        The directory walk runs on a worker thread. Unreadable shards are
        skipped and an unreadable or missing type root yields an empty
        listing.

        Args:
            file_type: Blob type to enumerate.
            cancel: Optional event that stops the listing when set.

        Returns:
            Iterator of blob names; cancel it or exhaust it when done.
        """
        _LOGGER.debug("blob_list", type=file_type.value)
        directory = self._layout.basedir(file_type)
        if self._layout.is_sharded(file_type):
            return BlobListing(lambda: walk_sharded(directory), cancel)
        return BlobListing(lambda: walk_flat(directory), cancel)

    def delete(self) -> None:
        """Remove the repository root and everything below it.

        Raises:
            StrongboxBackendError: If the tree cannot be removed.
        """
        _LOGGER.info("backend_delete", path=str(self._config.path))
        try:
            shutil.rmtree(self._config.path)
        except OSError as error:
            raise wrap_os_error("RemoveAll", error, self._config.path) from error

    def close(self) -> None:
        """Release backend resources; every file is closed by its own call."""


def _copy_stream(reader: BinaryIO, writer: BinaryIO) -> int:
    """Copy ``reader`` to ``writer`` in chunks and return the byte count."""
    total = 0
    while True:
        chunk = reader.read(COPY_CHUNK_SIZE)
        if not chunk:
            return total
        writer.write(chunk)
        total += len(chunk)


def _close_quietly(blob_file: BinaryIO) -> None:
    """Close a file whose failure is already being reported."""
    try:
        blob_file.close()
    except OSError as error:
        _LOGGER.debug("close_after_failure_failed", error=str(error))


def _mark_read_only(path: Path) -> None:
    """Clear all write permission bits on a finalized blob.

    Raises:
        StrongboxBackendError: If stat or chmod fails.
    """
    try:
        mode = stat_module.S_IMODE(os.stat(path).st_mode)
    except OSError as error:
        raise wrap_os_error("Stat", error, path) from error
    try:
        os.chmod(path, mode & ~WRITE_PERMISSION_BITS)
    except OSError as error:
        raise wrap_os_error("Chmod", error, path) from error
