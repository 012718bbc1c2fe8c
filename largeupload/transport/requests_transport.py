"""Transport backed by ``requests`` for callers without an aiohttp session.

The blocking call runs in the default executor.
"""

import asyncio
import functools
import logging
from collections.abc import Mapping

import requests
from multidict import CIMultiDict

from largeupload.const import SLICE_TIMEOUT_SECONDS
from largeupload.exceptions import TransportError
from largeupload.transport.base import SliceResponse

logger = logging.getLogger(__name__)


class RequestsTransport:
    """Send requests with a ``requests.Session``."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout_seconds: float = SLICE_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the transport.

        Args:
            session: Session to reuse; the caller keeps ownership of it. A new
                session is created when omitted and released by ``close()``.
            timeout_seconds: Timeout for each request.
        """
        self._owns_session = session is None
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout_seconds

    def close(self) -> None:
        """Close the session if this transport created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "RequestsTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    async def __call__(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> SliceResponse:
        """Send a request without blocking the event loop.

        Raises:
            TransportError: On connection errors and timeouts.
        """
        loop = asyncio.get_running_loop()
        send = functools.partial(
            self._session.request,
            method,
            url,
            headers=dict(headers),
            data=body,
            timeout=self._timeout,
        )
        try:
            response = await loop.run_in_executor(None, send)
        except requests.RequestException as e:
            logger.warning("%s request failed: %s", method, e)
            raise TransportError(f"{method} request failed: {e}") from e
        return SliceResponse(
            status=response.status_code,
            headers=CIMultiDict(response.headers),
            body=response.content,
        )
