"""Runtime configuration model for Strongbox.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_REPOSITORY_PATH, LOCATION_SCHEME, SUPPORTED_LAYOUTS
from core.errors import StrongboxConfigError


@dataclass(frozen=True)
class StrongboxConfig:
    """Validated backend configuration.

    Attributes:
        path: Root directory of the repository.
        layout: Layout name; empty selects detection with default fallback.
    """

    path: Path
    layout: str = ""

    @classmethod
    def from_env(cls) -> "StrongboxConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            StrongboxConfigError: If environment values are invalid.
        """
        repository_value = os.getenv("STRONGBOX_REPOSITORY", str(DEFAULT_REPOSITORY_PATH))
        layout_value = os.getenv("STRONGBOX_LAYOUT", "")
        if repository_value.startswith(f"{LOCATION_SCHEME}:"):
            return cls.from_location(repository_value, layout=layout_value)
        return cls(
            path=_resolve_path(repository_value),
            layout=_parse_layout_name(layout_value),
        )

    @classmethod
    def from_location(cls, location: str, layout: str = "") -> "StrongboxConfig":
        """Build config from a ``local:<path>`` location string.

        Args:
            location: Backend location string.
            layout: Optional layout name.

        Returns:
            A validated config object.

        Raises:
            StrongboxConfigError: If the location is not a local location.
        """
        scheme, separator, raw_path = location.partition(":")
        if not separator or scheme != LOCATION_SCHEME:
            raise StrongboxConfigError(
                f"Invalid repository location '{location}': expected '{LOCATION_SCHEME}:<path>'. "
                "Prefix the repository path with the local scheme."
            )
        if not raw_path:
            raise StrongboxConfigError(
                f"Invalid repository location '{location}': path is empty. "
                "Provide a directory after the scheme."
            )
        return cls(path=_resolve_path(raw_path), layout=_parse_layout_name(layout))


def _resolve_path(raw_path: str) -> Path:
    return Path(raw_path).expanduser().resolve()


def _parse_layout_name(raw_value: str) -> str:
    """Validate a layout name.

    Args:
        raw_value: Raw layout string.

    Returns:
        Normalized layout name, possibly empty.

    Raises:
        StrongboxConfigError: If the layout is not supported.
    """
    layout = raw_value.strip()
    if layout and layout not in SUPPORTED_LAYOUTS:
        raise StrongboxConfigError(
            f"Invalid STRONGBOX_LAYOUT value: expected one of {', '.join(SUPPORTED_LAYOUTS)}, "
            f"got '{raw_value}'. Leave it empty to detect the layout."
        )
    return layout
