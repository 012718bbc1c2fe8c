"""Byte range parsing and formatting for the upload session protocol.

Servers advertise what they still expect as ``"<min>-<max>"`` or, for
"everything from here on", ``"<min>-"``. Slices are sent with a
``Content-Range: bytes <min>-<max>/<total>`` header.
"""

from collections.abc import Sequence

from largeupload.exceptions import ProtocolError
from largeupload.models import ByteRange


def parse_range(candidates: Sequence[str], file_size: int) -> ByteRange:
    """Parse the first server advertised range.

    Args:
        candidates: ``nextExpectedRanges`` as sent by the server.
        file_size: total size of the file, used to resolve open ranges.

    Returns:
        The parsed range, or ``ByteRange.EMPTY`` when nothing is expected.

    Raises:
        ProtocolError: If the range expression is malformed.
    """
    if not candidates or not candidates[0]:
        return ByteRange.EMPTY

    expression = candidates[0].strip()
    min_part, sep, max_part = expression.partition("-")
    if not sep:
        raise ProtocolError(f"Malformed range expression: {expression!r}")

    try:
        min_value = int(min_part)
        max_value = int(max_part) if max_part else file_size - 1
        return ByteRange(min_value, max_value)
    except ValueError as exc:
        raise ProtocolError(f"Malformed range expression: {expression!r}") from exc


def next_range(base: int, range_size: int, file_size: int) -> ByteRange:
    """Compute the slice starting at ``base``, clipped to the end of the file."""
    if base >= file_size:
        return ByteRange.EMPTY
    max_value = min(base + range_size - 1, file_size - 1)
    return ByteRange(base, max_value)


def format_content_range(byte_range: ByteRange, file_size: int) -> str:
    """Format the ``Content-Range`` header value for a slice."""
    return f"bytes {byte_range.min_value}-{byte_range.max_value}/{file_size}"
