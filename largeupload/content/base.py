"""Interface shared by all content representations."""

from typing import Protocol, runtime_checkable

from largeupload.exceptions import ContentReadError
from largeupload.models import ByteRange


@runtime_checkable
class ContentSource(Protocol):
    """Provides the bytes of a file, one byte range at a time."""

    name: str
    size: int

    async def slice(self, byte_range: ByteRange) -> bytes:
        """Return exactly ``byte_range.length`` bytes of the file.

        Raises:
            ContentReadError: If fewer bytes are available.
        """
        ...


def validate_content_args(content: object, name: str, size: int) -> None:
    """Reject sources constructed without content, name or a positive size."""
    if content is None or not name or not size or size < 0:
        raise ContentReadError(
            "Please provide the content, name of the file and size of the file"
        )


def check_slice_length(data: bytes, byte_range: ByteRange, name: str) -> bytes:
    """Ensure a slice has the expected length; never return short data."""
    if len(data) != byte_range.length:
        raise ContentReadError(
            f"Could only read {len(data)} of {byte_range.length} bytes for range "
            f"{byte_range} of {name}"
        )
    return data
