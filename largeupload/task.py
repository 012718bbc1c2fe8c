"""Resumable large file upload task.

This module provides the LargeFileUploadTask class that uploads a file to an
upload session one byte range at a time. The server answers every accepted
slice with the ranges it still expects (202) until the final slice completes
the file (200/201). Slices are sent strictly in order; transient failures are
retried without advancing the range cursor.
"""

import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import aiohttp
from pydantic import ValidationError

from largeupload.bandwidth_limiter import BandwidthLimiter
from largeupload.config import UploadTaskOptions
from largeupload.const import (
    COMPLETED_TASK_MESSAGE,
    CONTINUE_CODE,
    FINAL_SUCCESS_CODES,
    RETRYABLE_STATUS_CODES,
)
from largeupload.content.base import ContentSource
from largeupload.exceptions import (
    ContentReadError,
    InvalidSessionError,
    ProtocolError,
    SessionExpiredError,
    TransportError,
)
from largeupload.models import (
    ByteRange,
    TaskState,
    UploadResult,
    UploadSession,
    UploadSessionResponse,
    UploadStatusResponse,
)
from largeupload.ranges import format_content_range, next_range, parse_range
from largeupload.transport.base import SliceResponse, Transport

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (TransportError, aiohttp.ClientError, asyncio.TimeoutError)


def _raise_for_status(response: SliceResponse, action: str) -> None:
    """Raise the error matching a failed response.

    Raises:
        TransportError: For statuses worth retrying later.
        ProtocolError: For every other non-2xx status.
    """
    if 200 <= response.status < 300:
        return
    message = f"{action} failed with HTTP {response.status}: {response.text()[:200]}"
    if response.status in RETRYABLE_STATUS_CODES:
        raise TransportError(message, status=response.status)
    raise ProtocolError(message, status=response.status)


class LargeFileUploadTask:
    """Upload a single file through a resumable upload session.

    The task owns the session and a cursor holding the range the server
    expects next. The cursor only moves when the server confirms a slice, so
    an interrupted task can be resumed from the last acknowledged range.
    """

    def __init__(
        self,
        transport: Transport,
        file: ContentSource,
        upload_session: UploadSession,
        options: UploadTaskOptions | None = None,
    ) -> None:
        """Initialize the upload task.

        Args:
            transport: Sends requests to the upload session URL.
            file: Source of the file content.
            upload_session: Session created for this file.
            options: Slice size, retry policy and progress hooks.
        """
        self._transport = transport
        self.file = file
        self._session = upload_session
        self.options = options or UploadTaskOptions()
        self._state = TaskState.IDLE

        # An empty cursor means "start of file" until the server has reported
        # status at least once; afterwards it means nothing is left to send.
        self._status_received = bool(upload_session.next_expected_ranges)
        self._next_range = self.parse_range(upload_session.next_expected_ranges)

        self._bandwidth_limiter = (
            BandwidthLimiter(self.options.bandwidth_limit)
            if self.options.bandwidth_limit
            else None
        )
        logger.info(
            "LargeFileUploadTask init: file=%s size=%d range_size=%d",
            file.name,
            file.size,
            self.options.range_size,
        )

    @classmethod
    async def create_upload_session(
        cls,
        transport: Transport,
        request_url: str,
        payload: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> UploadSession:
        """Create an upload session on the server.

        Args:
            transport: Sends the session creation request.
            request_url: Endpoint that creates upload sessions.
            payload: JSON body describing the item to upload.
            headers: Extra headers, typically authorization.

        Returns:
            The new upload session.

        Raises:
            TransportError: If the request could not be delivered.
            ProtocolError: If the server rejected it or returned a bad body.
        """
        request_headers = {"Content-Type": "application/json", **(headers or {})}
        body = json.dumps(dict(payload or {})).encode("utf-8")
        logger.info("POST create upload session: url=%s", request_url)
        response = await transport("POST", request_url, request_headers, body)
        logger.info("POST create upload session response: status=%d", response.status)
        _raise_for_status(response, "Creating upload session")
        try:
            session_response = UploadSessionResponse.model_validate(response.json())
        except ValidationError as exc:
            raise ProtocolError(
                f"Invalid upload session response: {exc}", status=response.status
            ) from exc
        return session_response.to_session()

    @property
    def state(self) -> TaskState:
        """Current lifecycle state of the task."""
        return self._state

    @property
    def next_range(self) -> ByteRange:
        """Range the server expects next, as last reported."""
        return self._next_range

    @property
    def is_completed(self) -> bool:
        """Whether the upload finished or the server expects no more ranges."""
        return self._state is TaskState.COMPLETED or (
            self._status_received and self._next_range.is_empty
        )

    def get_upload_session(self) -> UploadSession:
        """Return the upload session used by this task."""
        return self._session

    def parse_range(self, candidates: Sequence[str]) -> ByteRange:
        """Parse server advertised ranges against this task's file size."""
        return parse_range(candidates, self.file.size)

    def update_task_status(
        self, status: UploadStatusResponse | Mapping[str, Any]
    ) -> None:
        """Apply an upload session status reported by the server.

        An empty ``nextExpectedRanges`` marks the session as fully consumed.

        Raises:
            ProtocolError: If the status document or its ranges are malformed.
        """
        if not isinstance(status, UploadStatusResponse):
            try:
                status = UploadStatusResponse.model_validate(status)
            except ValidationError as exc:
                raise ProtocolError(f"Invalid upload status: {exc}") from exc
        cursor = self.parse_range(status.next_expected_ranges)
        self._session.refresh(status)
        self._next_range = cursor
        self._status_received = True
        logger.debug(
            "Upload status updated: file=%s next_range=%s expiry=%s",
            self.file.name,
            cursor,
            self._session.expiry,
        )

    def get_next_range(self) -> ByteRange:
        """Compute the next slice to send.

        Returns:
            The next range, or ``ByteRange.EMPTY`` when nothing is left.
        """
        if self._next_range.is_empty:
            if self._status_received:
                return ByteRange.EMPTY
            base = 0
        else:
            base = self._next_range.min_value
        return next_range(base, self.options.range_size, self.file.size)

    async def upload(self) -> UploadResult:
        """Upload the remaining ranges of the file.

        Returns:
            The result built from the final slice response.

        Raises:
            InvalidSessionError: If the task already completed, failed or was
                cancelled, or the session expired.
            ContentReadError: If the content source cannot supply a slice.
            TransportError: If a slice kept failing after all retries.
            ProtocolError: On unexpected responses from the server.
        """
        self._check_can_upload()

        self._state = TaskState.IN_PROGRESS
        logger.info(
            "Starting upload for %s: next range %s of %d bytes",
            self.file.name,
            self._next_range,
            self.file.size,
        )
        try:
            result = await self._upload_ranges()
            if self._state is TaskState.CANCELLED:
                raise InvalidSessionError(
                    "Upload session was cancelled while the final slice was in flight"
                )
        except asyncio.CancelledError:
            # Cursor only moves on confirmed slices, so the task can resume.
            if self._state is TaskState.IN_PROGRESS:
                self._state = TaskState.IDLE
            logger.info(
                "Upload of %s interrupted at range %s", self.file.name, self._next_range
            )
            raise
        except Exception as error:
            if self._state is not TaskState.CANCELLED:
                self._state = TaskState.FAILED
            logger.error("Upload failed for %s: %s", self.file.name, error)
            self._notify_failure(error)
            raise

        self._state = TaskState.COMPLETED
        logger.info(
            "Upload complete for %s: %d bytes, location=%s",
            self.file.name,
            self.file.size,
            result.location,
        )
        callback = self.options.progress_callback
        if callback is not None and callback.completed is not None:
            callback.completed(result, callback.extra_callback_params)
        return result

    async def resume(self) -> UploadResult:
        """Refresh the session status from the server and continue uploading."""
        await self.get_status()
        return await self.upload()

    async def get_status(self) -> UploadStatusResponse:
        """Query the server for the ranges it still expects.

        Raises:
            TransportError: If the request could not be delivered.
            ProtocolError: If the session is unknown or the body is invalid.
        """
        logger.debug("GET upload status: file=%s", self.file.name)
        response = await self._transport("GET", self._session.url, {})
        _raise_for_status(response, "Getting upload status")
        status = self._parse_status(response)
        self.update_task_status(status)
        return status

    async def cancel(self) -> None:
        """Delete the upload session on the server; the task cannot be reused.

        Raises:
            TransportError: If the request could not be delivered.
            ProtocolError: If the server refused to delete the session.
        """
        logger.info("DELETE upload session: file=%s", self.file.name)
        response = await self._transport("DELETE", self._session.url, {})
        _raise_for_status(response, "Cancelling upload session")
        self._state = TaskState.CANCELLED
        logger.info("Upload session cancelled: file=%s", self.file.name)

    async def upload_slice(self, data: bytes, byte_range: ByteRange) -> Any:
        """Send one slice and return the parsed response body.

        Raises:
            TransportError: For failures worth retrying.
            ProtocolError: For any other non-2xx response.
        """
        response = await self.upload_slice_get_raw_response(data, byte_range)
        _raise_for_status(response, f"Uploading range {byte_range}")
        return response.json()

    async def upload_slice_get_raw_response(
        self, data: bytes, byte_range: ByteRange
    ) -> SliceResponse:
        """Send one slice to the session URL and return the raw response."""
        headers = {
            "Content-Length": str(len(data)),
            "Content-Range": format_content_range(byte_range, self.file.size),
        }
        logger.debug(
            "PUT slice: file=%s bytes=%d range=%s",
            self.file.name,
            len(data),
            headers["Content-Range"],
        )
        return await self._transport("PUT", self._session.url, headers, data)

    def _check_can_upload(self) -> None:
        """Reject uploads on tasks that reached a terminal state."""
        if self.is_completed:
            error = InvalidSessionError(COMPLETED_TASK_MESSAGE)
        elif self._state in (TaskState.FAILED, TaskState.CANCELLED):
            error = InvalidSessionError(
                f"Task is {self._state.value}; create a new task for the upload "
                "session to resume it"
            )
        elif self._state is TaskState.IN_PROGRESS:
            error = InvalidSessionError("Task is already uploading")
        else:
            return
        logger.warning("Upload rejected for %s: %s", self.file.name, error)
        self._notify_failure(error)
        raise error

    async def _upload_ranges(self) -> UploadResult:
        """Send slices until the server returns the final response."""
        while True:
            if self._state is TaskState.CANCELLED:
                raise InvalidSessionError("Upload session was cancelled")

            byte_range = self.get_next_range()
            if byte_range.is_empty:
                raise ProtocolError(
                    "Server expects no further ranges but never confirmed the upload"
                )
            if self._session.is_expired():
                raise SessionExpiredError(
                    f"Upload session expired at {self._session.expiry.isoformat()}"
                )

            data = await self._read_slice(byte_range)
            response = await self._send_with_retries(data, byte_range)

            if response.status in FINAL_SUCCESS_CODES:
                return UploadResult.from_response(response)

            if response.status != CONTINUE_CODE:
                raise ProtocolError(
                    f"Unexpected status {response.status} uploading range "
                    f"{byte_range}: {response.text()[:200]}",
                    status=response.status,
                )

            self.update_task_status(self._parse_status(response))
            logger.debug(
                "Uploaded range %s of %s; next expected %s",
                byte_range,
                self.file.name,
                self._next_range,
            )
            callback = self.options.progress_callback
            if callback is not None and callback.progress is not None:
                callback.progress(byte_range)

    async def _read_slice(self, byte_range: ByteRange) -> bytes:
        try:
            return await self.file.slice(byte_range)
        except ContentReadError:
            raise
        except OSError as exc:
            raise ContentReadError(
                f"File I/O error reading range {byte_range} of {self.file.name}: {exc}"
            ) from exc

    async def _send_with_retries(
        self, data: bytes, byte_range: ByteRange
    ) -> SliceResponse:
        """Send a slice, retrying transient failures with exponential backoff.

        Raises:
            TransportError: If every attempt failed.
        """
        max_retries = self.options.max_retries
        last_error: Exception | None = None
        for attempt in range(max_retries):
            if self._bandwidth_limiter is not None:
                await self._bandwidth_limiter.acquire(len(data))
            try:
                response = await self.upload_slice_get_raw_response(data, byte_range)
            except TRANSIENT_ERRORS as exc:
                last_error = exc
                logger.warning(
                    "Upload of range %s failed (attempt %d/%d): %s",
                    byte_range,
                    attempt + 1,
                    max_retries,
                    exc,
                )
            else:
                if response.status not in RETRYABLE_STATUS_CODES:
                    return response
                last_error = TransportError(
                    f"HTTP {response.status}", status=response.status
                )
                logger.warning(
                    "Upload of range %s failed (attempt %d/%d): HTTP %d",
                    byte_range,
                    attempt + 1,
                    max_retries,
                    response.status,
                )
            if attempt < max_retries - 1:
                await self._sleep_backoff(attempt)

        raise TransportError(
            f"Upload of range {byte_range} failed after {max_retries} attempts: "
            f"{last_error}",
            status=getattr(last_error, "status", None),
        ) from last_error

    async def _sleep_backoff(self, attempt: int) -> None:
        """Sleep with exponential backoff, capped at max_backoff_seconds."""
        delay = min(2**attempt, self.options.max_backoff_seconds)
        await asyncio.sleep(delay)

    def _parse_status(self, response: SliceResponse) -> UploadStatusResponse:
        body = response.json()
        if not isinstance(body, dict):
            raise ProtocolError(
                "Upload status response has no status document", status=response.status
            )
        try:
            return UploadStatusResponse.model_validate(body)
        except ValidationError as exc:
            raise ProtocolError(
                f"Invalid upload status: {exc}", status=response.status
            ) from exc

    def _notify_failure(self, error: Exception) -> None:
        callback = self.options.progress_callback
        if callback is not None and callback.failure is not None:
            callback.failure(error, callback.extra_callback_params)
