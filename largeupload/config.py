"""Pydantic models and helpers for upload task configuration."""

import logging
import os
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from largeupload.const import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RANGE_SIZE,
    MAX_BACKOFF_SECONDS,
    MAX_RANGE_SIZE,
    MAX_RETRIES_ENV,
    RANGE_ALIGNMENT,
    RANGE_SIZE_ENV,
)
from largeupload.models import ProgressCallback

logger = logging.getLogger(__name__)

_BYTE_QUANTITY = re.compile(r"(\d+)\s*([a-z]*)")
_BYTE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
}


def parse_bytes(value: int | str) -> int:
    """Parse a byte quantity such as ``327680``, ``"320kb"`` or ``"5 MB"``.

    Units are binary and case-insensitive: b, k/kb, m/mb, g/gb.

    Raises:
        ValueError: If the value is malformed or uses an unknown unit.
    """
    if isinstance(value, int):
        return value
    match = _BYTE_QUANTITY.fullmatch(str(value).strip().lower())
    if match is None:
        raise ValueError(f"Invalid byte value: {value!r}")
    amount, unit = match.groups()
    if unit not in _BYTE_UNITS:
        raise ValueError(f"Unknown byte unit in value: {value!r}")
    return int(amount) * _BYTE_UNITS[unit]


def _env_default(name: str, default: int) -> Any:
    return os.getenv(name, default)


class UploadTaskOptions(BaseModel):
    """Configuration options for a large file upload task.

    ``range_size`` and ``max_retries`` default to the ``LARGEUPLOAD_RANGE_SIZE``
    and ``LARGEUPLOAD_MAX_RETRIES`` environment variables, read when the
    options are built and validated like explicit values.

    Attributes:
        range_size: bytes sent per slice. Capped at the largest slice the
            service accepts; should be a multiple of 320 KiB.
        max_retries: attempts per slice before a transient failure is final.
        max_backoff_seconds: upper bound of the exponential retry delay.
        bandwidth_limit: optional upload rate limit, in bytes per second.
        progress_callback: hooks notified of progress, completion and failure.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    range_size: int = Field(
        default_factory=lambda: _env_default(RANGE_SIZE_ENV, DEFAULT_RANGE_SIZE),
        validate_default=True,
    )
    max_retries: int = Field(
        default_factory=lambda: _env_default(MAX_RETRIES_ENV, DEFAULT_MAX_RETRIES),
        validate_default=True,
    )
    max_backoff_seconds: float = MAX_BACKOFF_SECONDS
    bandwidth_limit: int | None = None
    progress_callback: Any = None

    @field_validator("range_size", mode="before")
    @classmethod
    def _validate_range_size(cls, value: int | str) -> int:
        range_size = parse_bytes(value)
        if range_size <= 0:
            raise ValueError(f"range_size must be positive, got {range_size}")
        if range_size > MAX_RANGE_SIZE:
            logger.warning(
                "range_size %d exceeds the maximum of %d bytes; capping",
                range_size,
                MAX_RANGE_SIZE,
            )
            range_size = MAX_RANGE_SIZE
        if range_size % RANGE_ALIGNMENT:
            logger.warning(
                "range_size %d is not a multiple of %d bytes; "
                "the service may reject intermediate slices",
                range_size,
                RANGE_ALIGNMENT,
            )
        return range_size

    @field_validator("bandwidth_limit", mode="before")
    @classmethod
    def _validate_bandwidth_limit(cls, value: int | str | None) -> int | None:
        if value is None:
            return None
        return parse_bytes(value)

    @field_validator("progress_callback")
    @classmethod
    def _validate_progress_callback(cls, value: Any) -> ProgressCallback | None:
        if value is not None and not isinstance(value, ProgressCallback):
            raise ValueError("progress_callback must be a ProgressCallback")
        return value

    @field_validator("max_retries")
    @classmethod
    def _validate_max_retries(cls, value: int) -> int:
        if value < 1:
            raise ValueError(f"max_retries must be at least 1, got {value}")
        return value
