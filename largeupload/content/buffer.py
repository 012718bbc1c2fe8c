"""In-memory content source."""

from largeupload.content.base import check_slice_length, validate_content_args
from largeupload.exceptions import ContentReadError
from largeupload.models import ByteRange


class BufferUpload:
    """Content held in memory as ``bytes``, ``bytearray`` or ``memoryview``."""

    def __init__(self, content: bytes | bytearray | memoryview, name: str, size: int):
        """Initialize the buffer source.

        Args:
            content: The file content.
            name: File name.
            size: File size in bytes.
        """
        validate_content_args(content, name, size)
        self.content = memoryview(content).cast("B")
        self.name = name
        self.size = size

    async def slice(self, byte_range: ByteRange) -> bytes:
        """Copy the bytes of ``byte_range`` out of the buffer."""
        if byte_range.is_empty:
            raise ContentReadError(f"Cannot slice an empty range from {self.name}")
        data = bytes(self.content[byte_range.min_value : byte_range.max_value + 1])
        return check_slice_length(data, byte_range, self.name)
