"""HTTP transports for upload session requests."""

from largeupload.transport.aiohttp_transport import AiohttpTransport
from largeupload.transport.base import SliceResponse, Transport
from largeupload.transport.requests_transport import RequestsTransport

__all__ = ["AiohttpTransport", "RequestsTransport", "SliceResponse", "Transport"]
