"""Unit tests for the public SDK surface."""

from __future__ import annotations

import strongbox


def test_public_api_roundtrip(tmp_path) -> None:
    """Facade exports should be enough to create, write and reopen a repository."""
    config = strongbox.StrongboxConfig(path=tmp_path / "repo")
    backend = strongbox.create_backend(config)
    backend.save(strongbox.Handle(strongbox.FileType.KEY, "key1"), b"key")

    reopened = strongbox.open_backend(config)

    assert isinstance(reopened.layout, strongbox.DefaultLayout)
    assert reopened.stat(strongbox.Handle(strongbox.FileType.KEY, "key1")) == strongbox.FileInfo(3)
