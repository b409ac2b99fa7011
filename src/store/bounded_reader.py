"""Length-limited read stream over an open blob file."""

from __future__ import annotations

import io
from typing import BinaryIO


class BoundedReader(io.RawIOBase):
    """Read at most ``limit`` bytes from ``source`` and own its lifetime.

    Closing the reader closes the wrapped file.
    """

    def __init__(self, source: BinaryIO, limit: int) -> None:
        super().__init__()
        self._source = source
        self._remaining = limit

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        if self._remaining <= 0:
            return 0
        view = memoryview(buffer)
        chunk = self._source.read(min(len(view), self._remaining))
        if not chunk:
            return 0
        count = len(chunk)
        view[:count] = chunk
        self._remaining -= count
        return count

    def close(self) -> None:
        if not self.closed:
            self._source.close()
        super().close()
