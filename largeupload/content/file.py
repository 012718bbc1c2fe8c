"""File content source.

Wraps a seekable binary file object or a path on disk. Reads run in the
default executor so the event loop is not blocked by disk I/O.
"""

import asyncio
import io
import os
from pathlib import Path
from typing import BinaryIO

from largeupload.content.base import check_slice_length, validate_content_args
from largeupload.exceptions import ContentReadError
from largeupload.models import ByteRange


class FileUpload:
    """Content read from a seekable binary file."""

    def __init__(
        self,
        content: BinaryIO | str | os.PathLike,
        name: str | None = None,
        size: int | None = None,
    ):
        """Initialize the file source.

        Args:
            content: Open binary file object, or path of the file to read.
            name: File name; defaults to the path's name.
            size: File size in bytes; defaults to the size on disk.

        Raises:
            ContentReadError: If the file is missing or not seekable.
        """
        self._path: Path | None = None
        if isinstance(content, (str, os.PathLike)):
            self._path = Path(content)
            if not self._path.is_file():
                raise ContentReadError(f"File not found: {self._path}")
            name = name or self._path.name
            size = size if size is not None else self._path.stat().st_size
            self.content: BinaryIO | None = None
        else:
            if not isinstance(content, io.IOBase) or not content.seekable():
                raise ContentReadError("File content must be a seekable binary file")
            if size is None:
                size = content.seek(0, io.SEEK_END)
            self.content = content

        validate_content_args(content, name or "", size or 0)
        self.name = name
        self.size = size

    async def slice(self, byte_range: ByteRange) -> bytes:
        """Read the bytes of ``byte_range`` from the file."""
        if byte_range.is_empty:
            raise ContentReadError(f"Cannot slice an empty range from {self.name}")
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, self._read_range, byte_range)
        return check_slice_length(data, byte_range, self.name)

    def _read_range(self, byte_range: ByteRange) -> bytes:
        try:
            if self._path is not None:
                with open(self._path, "rb") as f:
                    f.seek(byte_range.min_value)
                    return f.read(byte_range.length)
            self.content.seek(byte_range.min_value)
            return self.content.read(byte_range.length)
        except (OSError, ValueError) as exc:
            raise ContentReadError(f"File I/O error reading {self.name}: {exc}") from exc
