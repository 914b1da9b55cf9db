"""
Upload sources backed by files on disk or in-memory buffers.
"""

import mimetypes
import os
from pathlib import Path
from typing import Optional, Union

import aiofiles

from ...core.interfaces.upload import IUploadSource

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class FileUploadSource(IUploadSource):
    """
    A file on disk, read one slice at a time.

    The size is captured at construction; the file is reopened for every
    read so no handle stays open between chunks.
    """

    def __init__(
        self,
        path: Union[str, "os.PathLike[str]"],
        content_type: Optional[str] = None,
        name: Optional[str] = None
    ):
        self._path = Path(path)
        if not self._path.is_file():
            raise FileNotFoundError(f"File not found: {self._path}")

        self._size = self._path.stat().st_size
        self._name = name or self._path.name
        self._content_type = (
            content_type
            or mimetypes.guess_type(self._name)[0]
            or DEFAULT_CONTENT_TYPE
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return self._size

    @property
    def content_type(self) -> str:
        return self._content_type

    async def read(self, start: int, end: int) -> bytes:
        if start < 0 or end > self._size or start > end:
            raise ValueError(f"Invalid range [{start}, {end}) for {self._size}-byte file")

        async with aiofiles.open(self._path, 'rb') as f:
            await f.seek(start)
            data = await f.read(end - start)

        if len(data) != end - start:
            raise IOError(f"Short read from {self._path}: expected {end - start} bytes, got {len(data)}")
        return data

    def __repr__(self) -> str:
        return f"FileUploadSource({str(self._path)!r}, size={self._size})"


class BytesUploadSource(IUploadSource):
    """An in-memory buffer."""

    def __init__(self, data: bytes, name: str = "upload.bin",
                 content_type: str = DEFAULT_CONTENT_TYPE):
        self._data = bytes(data)
        self._name = name
        self._content_type = content_type

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def content_type(self) -> str:
        return self._content_type

    async def read(self, start: int, end: int) -> bytes:
        if start < 0 or end > len(self._data) or start > end:
            raise ValueError(f"Invalid range [{start}, {end}) for {len(self._data)}-byte buffer")
        return self._data[start:end]
