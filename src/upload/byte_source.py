"""Byte sources consumed by the upload pipeline.

A source reports its total size and serves ranged reads. Its optional
``finalize`` hook runs once after an upload, whatever the outcome.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol

from core.errors import InvalidRequestError


class ByteSource(Protocol):
    """Readable payload of known size."""

    def size(self) -> int:
        """Return the total payload size in bytes."""

    async def read_bytes(self, offset: int, count: int) -> bytes:
        """Return up to ``count`` bytes starting at ``offset``."""


class BufferByteSource:
    """Byte source over an in-memory buffer."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = memoryview(data)

    def size(self) -> int:
        return self._data.nbytes

    async def read_bytes(self, offset: int, count: int) -> bytes:
        return self._data[offset : offset + count].tobytes()


class FileByteSource:
    """Byte source over a local file, opened lazily and closed on finalize."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        if not self._path.is_file():
            raise InvalidRequestError(f"Upload source not found at {self._path}.")
        self._size = self._path.stat().st_size
        self._handle: BinaryIO | None = None

    @property
    def path(self) -> Path:
        return self._path

    def size(self) -> int:
        return self._size

    async def read_bytes(self, offset: int, count: int) -> bytes:
        if self._handle is None:
            self._handle = self._path.open("rb")
        self._handle.seek(offset)
        return self._handle.read(count)

    async def finalize(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
