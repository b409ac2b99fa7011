"""Strongbox exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Backend failures carry the failing phase and the originating OS error.
"""

from __future__ import annotations


class StrongboxError(Exception):
    """Base exception for all Strongbox failures."""


class StrongboxConfigError(StrongboxError):
    """Raised for invalid runtime configuration."""


class StrongboxHandleError(StrongboxError):
    """Raised for malformed handles and invalid read ranges."""


class StrongboxLayoutError(StrongboxError):
    """Raised for unknown layout names and failed layout detection."""


class StrongboxBackendError(StrongboxError):
    """Raised for filesystem failures inside a backend operation.

    Attributes:
        phase: Name of the failing step, e.g. ``OpenFile`` or ``Sync``.
        cause: Originating exception, usually an OS error, when one exists.
    """

    def __init__(self, message: str, phase: str, cause: Exception | None = None) -> None:
        super().__init__(f"{phase}: {message}")
        self.phase = phase
        self.cause = cause


class StrongboxNotFoundError(StrongboxBackendError):
    """Raised when the target path does not exist."""


class StrongboxAlreadyExistsError(StrongboxBackendError):
    """Raised when a create-once target already exists."""


def wrap_os_error(phase: str, error: OSError, subject: object) -> StrongboxBackendError:
    """Wrap an OS error into the matching backend error type.

    Args:
        phase: Failing step name.
        error: Originating OS error.
        subject: Path or handle the operation targeted.

    Returns:
        Backend error instance, not raised.
    """
    message = f"{subject}: {error.strerror or error}"
    if isinstance(error, FileNotFoundError):
        return StrongboxNotFoundError(message, phase, error)
    if isinstance(error, FileExistsError):
        return StrongboxAlreadyExistsError(message, phase, error)
    return StrongboxBackendError(message, phase, error)
