"""Models used by the large file upload task."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from largeupload.exceptions import InvalidSessionError, ProtocolError

if TYPE_CHECKING:
    from largeupload.transport.base import SliceResponse


def _as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class TaskState(str, Enum):
    """Lifecycle states for an upload task.

    State transitions:
    - IDLE -> IN_PROGRESS (upload started)
    - IN_PROGRESS -> IDLE (asyncio cancellation, cursor untouched)
    - IN_PROGRESS -> COMPLETED (final 200/201 slice response)
    - IN_PROGRESS -> FAILED (content, protocol or exhausted transport error)
    - IDLE -> CANCELLED (upload session deleted)
    """

    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ByteRange:
    """Closed, inclusive interval of byte offsets within a file.

    Both bounds set to -1 is the empty sentinel: there is nothing left to send.
    """

    EMPTY: ClassVar[ByteRange]

    min_value: int = -1
    max_value: int = -1

    def __post_init__(self) -> None:
        """Validate the range bounds."""
        if self.min_value == -1 and self.max_value == -1:
            return
        if not 0 <= self.min_value <= self.max_value:
            raise ValueError(
                f"Invalid byte range: min={self.min_value} max={self.max_value}"
            )

    @property
    def is_empty(self) -> bool:
        """Whether this is the empty sentinel."""
        return self.min_value == -1 and self.max_value == -1

    @property
    def length(self) -> int:
        """Number of bytes covered by the range."""
        if self.is_empty:
            return 0
        return self.max_value - self.min_value + 1

    def __str__(self) -> str:
        return f"{self.min_value}-{self.max_value}"


ByteRange.EMPTY = ByteRange()


@dataclass
class UploadSession:
    """Server issued handle for a resumable upload.

    Attributes:
        url: pre-authenticated URL that receives the slices.
        expiry: time after which the server discards the session.
        next_expected_ranges: ranges the server still expects, as sent by it.
    """

    url: str
    expiry: datetime | None = None
    next_expected_ranges: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate the session URL and normalize the expiry."""
        if not self.url:
            raise InvalidSessionError("Upload session URL must not be empty")
        self.expiry = _as_utc(self.expiry)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return whether the session has passed its expiry time."""
        if self.expiry is None:
            return False
        now = _as_utc(now) or datetime.now(timezone.utc)
        return now >= self.expiry

    def refresh(self, status: UploadStatusResponse) -> None:
        """Apply a status document returned by the server."""
        if status.expiration_date_time is not None:
            self.expiry = _as_utc(status.expiration_date_time)
        self.next_expected_ranges = list(status.next_expected_ranges)


@dataclass
class UploadResult:
    """Outcome of a completed upload."""

    location: str | None = None
    response_body: Any | None = None

    @classmethod
    def from_response(cls, response: SliceResponse) -> UploadResult:
        """Build an UploadResult from the final slice response.

        Bodies that are not JSON are kept as text; the file is already stored.
        """
        try:
            body = response.json()
        except ProtocolError:
            body = response.text()
        return cls(location=response.headers.get("Location"), response_body=body)


class UploadStatusResponse(BaseModel):
    """Session status returned by the server while an upload is in progress."""

    model_config = ConfigDict(populate_by_name=True)

    expiration_date_time: datetime | None = Field(
        default=None, alias="expirationDateTime"
    )
    next_expected_ranges: list[str] = Field(
        default_factory=list, alias="nextExpectedRanges"
    )


class UploadSessionResponse(UploadStatusResponse):
    """Body returned by the server when an upload session is created."""

    upload_url: str = Field(alias="uploadUrl")

    def to_session(self) -> UploadSession:
        """Convert the response into an UploadSession."""
        return UploadSession(
            url=self.upload_url,
            expiry=self.expiration_date_time,
            next_expected_ranges=list(self.next_expected_ranges),
        )


@dataclass
class ProgressCallback:
    """Optional hooks notified while a task runs.

    Attributes:
        progress: called with each range the server acknowledged with 202.
        completed: called once with the result and ``extra_callback_params``.
        failure: called with the error and ``extra_callback_params``.
        extra_callback_params: opaque value passed through to the hooks.
    """

    progress: Callable[[ByteRange], None] | None = None
    completed: Callable[[UploadResult, Any], None] | None = None
    failure: Callable[[Exception, Any], None] | None = None
    extra_callback_params: Any = None
