"""Exception classes for the large file upload workflow."""


class LargeUploadError(Exception):
    """Base error for large file uploads."""

    name = "LargeUploadError"


class InvalidSessionError(LargeUploadError):
    """Raised when a task or its upload session can no longer be used."""

    name = "InvalidSession"


class SessionExpiredError(InvalidSessionError):
    """Raised when the upload session expired before the upload finished."""


class ContentReadError(LargeUploadError):
    """Raised when the content source cannot produce the requested bytes."""

    name = "ContentReadError"


class TransportError(LargeUploadError):
    """Raised when a request could not be delivered or failed transiently."""

    name = "TransportError"

    def __init__(self, message: str, status: int | None = None):
        """Initialize TransportError.

        Args:
            message: Human readable description of the failure.
            status: HTTP status code, when a response was received.
        """
        super().__init__(message)
        self.status = status


class ProtocolError(LargeUploadError):
    """Raised on malformed ranges, bodies or unexpected status codes."""

    name = "ProtocolError"

    def __init__(self, message: str, status: int | None = None):
        """Initialize ProtocolError.

        Args:
            message: Human readable description of the failure.
            status: HTTP status code, when a response was received.
        """
        super().__init__(message)
        self.status = status
