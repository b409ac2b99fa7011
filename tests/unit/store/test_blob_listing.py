"""Unit tests for streaming blob enumeration."""

from __future__ import annotations

import errno
import gc
import os
import shutil
import threading
from pathlib import Path

import pytest

from core.config import StrongboxConfig
from core.errors import StrongboxNotFoundError
from core.types import FileType, Handle
from store import blob_listing
from store.blob_listing import BlobListing
from store.local_backend import LocalBackend, create_backend


def _create(tmp_path) -> LocalBackend:
    return create_backend(StrongboxConfig(path=tmp_path / "repo", layout="default"))


def _populate_shards(backend: LocalBackend) -> dict[str, list[str]]:
    shards = {
        "aa": ["aa01", "aa02"],
        "bb": ["bb01", "bb02"],
        "cc": ["cc01"],
    }
    for names in shards.values():
        for name in names:
            backend.save(Handle(FileType.DATA, name), name.encode("utf-8"))
    return shards


def test_list_flat_type_yields_every_saved_name(tmp_path) -> None:
    """Listing a flat type should return exactly the saved names."""
    backend = _create(tmp_path)
    expected = {f"snap{index:02d}" for index in range(12)}
    for name in expected:
        backend.save(Handle(FileType.SNAPSHOT, name), b"snapshot")

    with backend.list(FileType.SNAPSHOT) as listing:
        names = list(listing)

    assert sorted(names) == sorted(expected)


def test_list_flat_type_skips_non_regular_entries(tmp_path) -> None:
    """Subdirectories and symlinks in a type directory are not blobs."""
    backend = _create(tmp_path)
    backend.save(Handle(FileType.KEY, "key1"), b"key")
    keys_dir = backend.layout.basedir(FileType.KEY)
    (keys_dir / "nested").mkdir()
    os.symlink(keys_dir / "key1", keys_dir / "link")

    with backend.list(FileType.KEY) as listing:
        names = list(listing)

    assert names == ["key1"]


def test_list_sharded_type_concatenates_shards(tmp_path) -> None:
    """Data listing should walk every shard directory."""
    backend = _create(tmp_path)
    shards = _populate_shards(backend)

    with backend.list(FileType.DATA) as listing:
        names = list(listing)

    assert sorted(names) == sorted(name for group in shards.values() for name in group)


def test_list_sharded_type_skips_failing_shard(
    tmp_path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A shard that cannot be listed is skipped without failing the listing."""
    backend = _create(tmp_path)
    shards = _populate_shards(backend)
    real_list_entries = blob_listing._list_entries

    def _list_entries(directory: Path, want_dirs: bool) -> list[str]:
        if directory.name == "bb":
            raise PermissionError(errno.EACCES, "shard unreadable", str(directory))
        return real_list_entries(directory, want_dirs)

    monkeypatch.setattr(blob_listing, "_list_entries", _list_entries)

    with backend.list(FileType.DATA) as listing:
        names = list(listing)

    assert sorted(names) == sorted(shards["aa"] + shards["cc"])


@pytest.mark.skipif(
    not hasattr(os, "geteuid") or os.geteuid() == 0,
    reason="permission bits do not restrict root",
)
def test_list_sharded_type_skips_unreadable_shard_directory(tmp_path) -> None:
    """A shard with revoked permissions is skipped on a real filesystem."""
    backend = _create(tmp_path)
    shards = _populate_shards(backend)
    shard_dir = backend.layout.basedir(FileType.DATA) / "bb"
    os.chmod(shard_dir, 0)
    try:
        with backend.list(FileType.DATA) as listing:
            names = list(listing)
    finally:
        os.chmod(shard_dir, 0o700)

    assert sorted(names) == sorted(shards["aa"] + shards["cc"])


def test_list_missing_type_root_is_empty(tmp_path) -> None:
    """Enumerating an absent type root yields nothing, unlike stat."""
    backend = _create(tmp_path)
    shutil.rmtree(backend.layout.basedir(FileType.SNAPSHOT))
    shutil.rmtree(backend.layout.basedir(FileType.DATA))

    with backend.list(FileType.SNAPSHOT) as snapshots, backend.list(FileType.DATA) as data:
        snapshot_names = list(snapshots)
        data_names = list(data)

    with pytest.raises(StrongboxNotFoundError):
        backend.stat(Handle(FileType.SNAPSHOT, "snap1"))
    assert snapshot_names == [] and data_names == []


def test_cancel_stops_stream_and_producer(tmp_path) -> None:
    """Cancelling after k items should end the stream and stop the thread."""
    backend = _create(tmp_path)
    for index in range(20):
        backend.save(Handle(FileType.INDEX, f"idx{index:02d}"), b"index")
    listing = backend.list(FileType.INDEX)

    seen = [next(listing) for _ in range(3)]
    listing.cancel()
    remaining = list(listing)

    assert len(seen) == 3 and remaining == []
    assert listing.cancelled and not listing.is_alive()


def test_external_cancel_event_stops_listing(tmp_path) -> None:
    """Setting a caller-owned event should end the stream."""
    backend = _create(tmp_path)
    for index in range(10):
        backend.save(Handle(FileType.LOCK, f"lock{index}"), b"lock")
    cancel = threading.Event()
    listing = backend.list(FileType.LOCK, cancel=cancel)

    first = next(listing)
    cancel.set()
    remaining = list(listing)
    listing.cancel()

    assert first.startswith("lock") and remaining == []
    assert not listing.is_alive()


def test_listing_skips_empty_names_and_finishes() -> None:
    """Empty names from a walk are dropped and the thread exits at the end."""
    listing = BlobListing(lambda: iter(["a", "", "b"]))

    names = list(listing)
    listing.cancel()

    assert names == ["a", "b"] and not listing.is_alive()


def test_list_unreadable_type_root_is_empty(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A type root that exists but cannot be read ends the listing with no items."""
    backend = _create(tmp_path)
    _populate_shards(backend)
    backend.save(Handle(FileType.SNAPSHOT, "snap1"), b"snapshot")
    unreadable_roots = {
        backend.layout.basedir(FileType.DATA),
        backend.layout.basedir(FileType.SNAPSHOT),
    }
    real_list_entries = blob_listing._list_entries

    def _list_entries(directory: Path, want_dirs: bool) -> list[str]:
        if directory in unreadable_roots:
            raise PermissionError(errno.EACCES, "root unreadable", str(directory))
        return real_list_entries(directory, want_dirs)

    monkeypatch.setattr(blob_listing, "_list_entries", _list_entries)

    with backend.list(FileType.DATA) as data, backend.list(FileType.SNAPSHOT) as snapshots:
        data_names = list(data)
        snapshot_names = list(snapshots)

    assert data_names == [] and snapshot_names == []
    assert all(directory.is_dir() for directory in unreadable_roots)


def test_dropped_listing_stops_producer(tmp_path) -> None:
    """Releasing an unfinished listing should stop its producer thread."""
    backend = _create(tmp_path)
    for index in range(10):
        backend.save(Handle(FileType.KEY, f"key{index}"), b"key")
    listing = backend.list(FileType.KEY)
    next(listing)
    producer = listing._thread

    del listing
    gc.collect()
    producer.join(timeout=5)

    assert not producer.is_alive()
