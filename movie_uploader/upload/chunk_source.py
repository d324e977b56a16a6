"""Byte sources that chunks are read from.

A source exposes the file's name, total size and declared media type, and can
return the bytes of any ``[start, end)`` range. The dispatcher only relies on
``read_range`` so uploads work the same for files on disk and buffers.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path


class ChunkSource(ABC):
    """Random-access byte source for a single upload."""

    def __init__(self, name: str, content_type: str | None = None) -> None:
        """Initialize the source.

        Args:
            name: File name sent to the server; its extension drives media
                type detection when ``content_type`` is not informative.
            content_type: Media type declared by the caller, if any.
        """
        self.name = name
        self.content_type = content_type

    @property
    @abstractmethod
    def size(self) -> int:
        """Total number of bytes in the source."""

    @abstractmethod
    async def read_range(self, start: int, end: int) -> bytes:
        """Return the bytes in ``[start, end)``."""


class FileChunkSource(ChunkSource):
    """Chunk source backed by a file on disk.

    Each read opens the file, seeks, and reads in the default executor so the
    event loop is not blocked and concurrent reads do not share a handle.
    """

    def __init__(
        self,
        path: Path | str,
        content_type: str | None = None,
        name: str | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            path: Path of the file to upload.
            content_type: Media type declared by the caller, if any.
            name: File name sent to the server; defaults to the path's name.

        Raises:
            FileNotFoundError: If ``path`` is not an existing file.
        """
        self.path = Path(path)
        if not self.path.is_file():
            raise FileNotFoundError(f"File not found: {self.path}")
        super().__init__(name or self.path.name, content_type)
        self._size = self.path.stat().st_size

    @property
    def size(self) -> int:
        return self._size

    def _read(self, start: int, end: int) -> bytes:
        with open(self.path, "rb") as f:
            f.seek(start)
            return f.read(end - start)

    async def read_range(self, start: int, end: int) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read, start, end)


class BytesChunkSource(ChunkSource):
    """Chunk source backed by an in-memory buffer."""

    def __init__(
        self, data: bytes, name: str, content_type: str | None = None
    ) -> None:
        """Initialize the source.

        Args:
            data: Buffer to upload.
            name: File name sent to the server.
            content_type: Media type declared by the caller, if any.
        """
        super().__init__(name, content_type)
        self._data = bytes(data)

    @property
    def size(self) -> int:
        return len(self._data)

    async def read_range(self, start: int, end: int) -> bytes:
        return self._data[start:end]
