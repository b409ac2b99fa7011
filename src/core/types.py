"""Shared typed models.

This module defines the immutable values exchanged with the backend:
blob types, handles and their validity rules, and stat results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from core.errors import StrongboxHandleError


class FileType(str, Enum):
    """Closed set of blob types stored by a repository."""

    DATA = "data"
    KEY = "key"
    LOCK = "lock"
    SNAPSHOT = "snapshot"
    INDEX = "index"
    CONFIG = "config"

    @classmethod
    def parse(cls, raw_value: str) -> "FileType":
        """Parse a type name.

        Args:
            raw_value: Type name such as ``data``.

        Returns:
            Matching file type.

        Raises:
            StrongboxHandleError: If the name is not a known type.
        """
        try:
            return cls(raw_value)
        except ValueError as error:
            choices = ", ".join(item.value for item in cls)
            raise StrongboxHandleError(
                f"Invalid blob type '{raw_value}': expected one of {choices}."
            ) from error


@dataclass(frozen=True)
class Handle:
    """Identity of a stored blob.

    Attributes:
        type: Blob type.
        name: Content-derived name; ignored for the config singleton.
    """

    type: FileType
    name: str = ""

    def validate(self) -> None:
        """Check that the handle may be mapped to a path.

        Raises:
            StrongboxHandleError: If type or name is malformed.
        """
        if not isinstance(self.type, FileType):
            raise StrongboxHandleError(f"Invalid handle type {self.type!r}.")
        if self.type is FileType.CONFIG:
            return
        if not self.name:
            raise StrongboxHandleError(f"Invalid handle {self}: name is empty.")
        if self.name in (".", "..") or any(char in self.name for char in ("/", "\\", "\x00")):
            raise StrongboxHandleError(
                f"Invalid handle {self}: name must be a single path component."
            )

    def __str__(self) -> str:
        if self.type is FileType.CONFIG:
            return f"<{self.type.value}>"
        return f"<{self.type.value}/{self.name}>"


@dataclass(frozen=True)
class FileInfo:
    """Stat result for a stored blob.

    Attributes:
        size: Content length in bytes.
    """

    size: int
