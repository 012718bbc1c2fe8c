"""Streamed content source.

Bytes arrive incrementally from an ``asyncio.StreamReader``, any object with
an ``async read(n)`` method, or an async iterable of byte chunks. Chunks are
accumulated until a slice can be served in full; a stream that ends early
fails the slice instead of returning short data.
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from largeupload.content.base import check_slice_length, validate_content_args
from largeupload.exceptions import ContentReadError
from largeupload.models import ByteRange

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class StreamUpload:
    """Content read sequentially from an asynchronous stream."""

    def __init__(self, content: Any, name: str, size: int):
        """Initialize the stream source.

        Args:
            content: ``asyncio.StreamReader``, object with ``async read(n)``
                or async iterable of ``bytes``.
            name: File name.
            size: File size in bytes.
        """
        validate_content_args(content, name, size)
        if hasattr(content, "read"):
            if not inspect.iscoroutinefunction(content.read):
                raise ContentReadError(
                    f"Content of {name} has a blocking read(); wrap it in "
                    "FileUpload or provide an asynchronous read"
                )
        elif not isinstance(content, AsyncIterable):
            raise ContentReadError(f"Content of {name} is not a readable stream")
        self.content = content
        self.name = name
        self.size = size

        self._iterator: AsyncIterator[bytes] | None = None
        self._buffer = bytearray()
        # Stream offset of the first byte held in _buffer
        self._offset = 0
        self._eof = False
        self._last_range: ByteRange | None = None
        self._last_slice = b""

    async def slice(self, byte_range: ByteRange) -> bytes:
        """Read the bytes of ``byte_range`` from the stream.

        Ranges must be requested in increasing order. The most recent slice is
        kept so that it can be requested again when an upload is resumed.

        Raises:
            ContentReadError: If the range lies behind the stream position or
                the stream ends before the range is complete.
        """
        if byte_range.is_empty:
            raise ContentReadError(f"Cannot slice an empty range from {self.name}")
        if byte_range == self._last_range:
            return self._last_slice
        if byte_range.min_value < self._offset:
            raise ContentReadError(
                f"Range {byte_range} of {self.name} was already consumed from the "
                f"stream (position {self._offset})"
            )

        await self._fill(byte_range.max_value + 1 - self._offset)

        skip = byte_range.min_value - self._offset
        data = bytes(self._buffer[skip : skip + byte_range.length])
        check_slice_length(data, byte_range, self.name)

        consumed = skip + byte_range.length
        del self._buffer[:consumed]
        self._offset += consumed
        self._last_range = byte_range
        self._last_slice = data
        return data

    async def _fill(self, required: int) -> None:
        """Accumulate stream chunks until ``required`` bytes are buffered."""
        while len(self._buffer) < required:
            if self._eof:
                raise ContentReadError(
                    f"Stream of {self.name} ended before reading required range "
                    f"size ({len(self._buffer)} of {required} bytes available)"
                )
            chunk = await self._read_chunk(required - len(self._buffer))
            if chunk:
                self._buffer.extend(chunk)
            else:
                self._eof = True

    async def _read_chunk(self, wanted: int) -> bytes:
        """Read the next chunk; an empty result marks the end of the stream."""
        try:
            if hasattr(self.content, "read"):
                return await self.content.read(min(wanted, READ_CHUNK_SIZE))
            if self._iterator is None:
                self._iterator = self.content.__aiter__()
            chunk = b""
            while not chunk:
                chunk = await self._iterator.__anext__()
            return bytes(chunk)
        except StopAsyncIteration:
            return b""
        except (OSError, asyncio.IncompleteReadError, ValueError) as exc:
            logger.error("Error reading stream of %s: %s", self.name, exc)
            raise ContentReadError(
                f"Error encountered while reading the stream of {self.name}"
            ) from exc
