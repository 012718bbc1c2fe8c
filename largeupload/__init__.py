"""Resumable large file uploads over byte-range upload sessions."""

from .config import UploadTaskOptions, parse_bytes
from .content import BufferUpload, ContentSource, FileUpload, StreamUpload
from .exceptions import (
    ContentReadError,
    InvalidSessionError,
    LargeUploadError,
    ProtocolError,
    SessionExpiredError,
    TransportError,
)
from .models import (
    ByteRange,
    ProgressCallback,
    TaskState,
    UploadResult,
    UploadSession,
    UploadStatusResponse,
)
from .ranges import parse_range
from .task import LargeFileUploadTask
from .transport import AiohttpTransport, RequestsTransport, SliceResponse, Transport

__version__ = "1.0.0"

__all__ = [
    "AiohttpTransport",
    "BufferUpload",
    "ByteRange",
    "ContentReadError",
    "ContentSource",
    "FileUpload",
    "InvalidSessionError",
    "LargeFileUploadTask",
    "LargeUploadError",
    "ProgressCallback",
    "ProtocolError",
    "RequestsTransport",
    "SessionExpiredError",
    "SliceResponse",
    "StreamUpload",
    "TaskState",
    "Transport",
    "TransportError",
    "UploadResult",
    "UploadSession",
    "UploadStatusResponse",
    "UploadTaskOptions",
    "parse_bytes",
    "parse_range",
]
