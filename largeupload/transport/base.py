"""Transport boundary used by the upload task."""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from multidict import CIMultiDict

from largeupload.exceptions import ProtocolError


@dataclass
class SliceResponse:
    """Status, headers and body of a response.

    Read in full before the underlying connection is released, so the task can
    inspect it after the request context exits.
    """

    status: int
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    body: bytes = b""

    def __post_init__(self) -> None:
        """Make header lookups case-insensitive."""
        if not isinstance(self.headers, CIMultiDict):
            self.headers = CIMultiDict(self.headers or {})

    def text(self) -> str:
        """Return the body decoded as UTF-8."""
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Return the parsed JSON body, or None when the body is empty.

        Raises:
            ProtocolError: If the body is not valid JSON.
        """
        if not self.body.strip():
            return None
        try:
            return json.loads(self.body)
        except ValueError as exc:
            raise ProtocolError(
                f"Response body is not valid JSON: {self.text()[:200]}",
                status=self.status,
            ) from exc


class Transport(Protocol):
    """Sends a single request and returns the fully read response.

    Implementations raise ``TransportError`` when no response was received.
    """

    async def __call__(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> SliceResponse:
        """Send the request."""
        ...
