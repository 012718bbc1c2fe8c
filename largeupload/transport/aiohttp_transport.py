"""Transport backed by an ``aiohttp.ClientSession``."""

import asyncio
import logging
from collections.abc import Mapping

import aiohttp
from multidict import CIMultiDict

from largeupload.const import SLICE_TIMEOUT_SECONDS
from largeupload.exceptions import TransportError
from largeupload.transport.base import SliceResponse

logger = logging.getLogger(__name__)


class AiohttpTransport:
    """Send requests through a shared aiohttp client session."""

    def __init__(
        self,
        client_session: aiohttp.ClientSession,
        timeout_seconds: float = SLICE_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the transport.

        Args:
            client_session: aiohttp ClientSession for HTTP requests
            timeout_seconds: Total timeout for each request
        """
        self._session = client_session
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def __call__(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> SliceResponse:
        """Send a request and read the whole response before releasing it.

        Raises:
            TransportError: On connection, SSL or timeout errors.
        """
        try:
            async with self._session.request(
                method,
                url,
                headers=dict(headers),
                data=body,
                timeout=self._timeout,
            ) as response:
                # Extract response data before context exits
                return SliceResponse(
                    status=response.status,
                    headers=CIMultiDict(response.headers),
                    body=await response.read(),
                )
        except aiohttp.ClientSSLError as e:
            raise TransportError(f"SSL error: {e}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Network connection error: {e}") from e
        except asyncio.TimeoutError as e:
            logger.warning("%s %s timed out", method, url[:80])
            raise TransportError(f"{method} request timed out") from e
