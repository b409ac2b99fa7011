"""Cancellable streaming enumeration of stored blob names.

This module walks flat and sharded type directories on a worker thread.
Names reach the consumer one at a time through a single-slot queue.
"""

from __future__ import annotations

import os
import queue
import threading
from pathlib import Path
from typing import Callable, Iterator

from core.constants import LISTING_POLL_SECONDS
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)
_END_OF_STREAM = object()


class BlobListing:
    """Lazy iterator over blob names produced by a background walk.

    The walk runs on a daemon thread and blocks until the consumer takes
    the pending name or the listing is cancelled. Setting the cancel event,
    calling ``cancel``, leaving a ``with`` block or dropping the last
    reference to the listing stops the producer.
    """

    def __init__(
        self,
        walk: Callable[[], Iterator[str]],
        cancel: threading.Event | None = None,
    ) -> None:
        """Start the producer thread.

        Args:
            walk: Zero-argument callable returning the name iterator.
            cancel: Optional caller-owned cancellation signal.
        """
        self._queue: queue.Queue[object] = queue.Queue(maxsize=1)
        self._stop = threading.Event()
        self._signals = (self._stop,) if cancel is None else (self._stop, cancel)
        self._exhausted = False
        # The thread must not reference self, or an abandoned listing is never collected.
        self._thread = threading.Thread(
            target=_produce,
            args=(walk, self._queue, self._signals),
            name="strongbox-list",
            daemon=True,
        )
        self._thread.start()

    def __iter__(self) -> "BlobListing":
        return self

    def __next__(self) -> str:
        while not self._exhausted:
            if _is_cancelled(self._signals):
                self._exhausted = True
                break
            try:
                item = self._queue.get(timeout=LISTING_POLL_SECONDS)
            except queue.Empty:
                continue
            if item is _END_OF_STREAM:
                self._exhausted = True
                break
            return str(item)
        raise StopIteration

    def __enter__(self) -> "BlobListing":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()

    def __del__(self) -> None:
        stop = getattr(self, "_stop", None)
        if stop is not None:
            stop.set()

    @property
    def cancelled(self) -> bool:
        """Return whether the cancellation signal has been raised."""
        return _is_cancelled(self._signals)

    def cancel(self) -> None:
        """Stop the producer and wait for its thread to exit."""
        self._stop.set()
        self._exhausted = True
        self._drain()
        self._thread.join()

    def is_alive(self) -> bool:
        """Return whether the producer thread is still running."""
        return self._thread.is_alive()

    def _drain(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return


def _is_cancelled(signals: tuple[threading.Event, ...]) -> bool:
    return any(signal.is_set() for signal in signals)


def _produce(
    walk: Callable[[], Iterator[str]],
    slot: queue.Queue[object],
    signals: tuple[threading.Event, ...],
) -> None:
    try:
        for name in walk():
            if _is_cancelled(signals):
                return
            if name and not _push(slot, name, signals):
                return
    finally:
        _push(slot, _END_OF_STREAM, signals)


def _push(slot: queue.Queue[object], item: object, signals: tuple[threading.Event, ...]) -> bool:
    """Hand one item to the consumer, giving up once cancelled."""
    while not _is_cancelled(signals):
        try:
            slot.put(item, timeout=LISTING_POLL_SECONDS)
            return True
        except queue.Full:
            continue
    return False


def walk_flat(directory: Path) -> Iterator[str]:
    """Yield regular file names in one type directory.

    A directory that cannot be listed, including a missing one, yields
    nothing.
    """
    try:
        names = _list_entries(directory, want_dirs=False)
    except OSError as error:
        _LOGGER.debug("list_root_failed", directory=str(directory), error=str(error))
        return
    yield from names


def walk_sharded(directory: Path) -> Iterator[str]:
    """Yield regular file names from every shard directory below ``directory``.

    A shard that cannot be listed is skipped. A root that cannot be listed
    yields nothing. Only one shard listing is held in memory at a time.
    """
    try:
        shard_names = _list_entries(directory, want_dirs=True)
    except OSError as error:
        _LOGGER.debug("list_root_failed", directory=str(directory), error=str(error))
        return
    for shard_name in shard_names:
        shard_dir = directory / shard_name
        try:
            names = _list_entries(shard_dir, want_dirs=False)
        except OSError as error:
            _LOGGER.warning("shard_list_failed", directory=str(shard_dir), error=str(error))
            continue
        yield from names


def _list_entries(directory: Path, want_dirs: bool) -> list[str]:
    """List entry names of one kind, never following symlinks.

    Args:
        directory: Directory to read.
        want_dirs: Select subdirectories instead of regular files.

    Returns:
        Matching entry names.

    Raises:
        OSError: If the directory cannot be read.
    """
    with os.scandir(directory) as entries:
        if want_dirs:
            return [entry.name for entry in entries if entry.is_dir(follow_symlinks=False)]
        return [entry.name for entry in entries if entry.is_file(follow_symlinks=False)]
