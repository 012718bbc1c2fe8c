"""Shared fixtures for large file upload tests."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from largeupload.models import UploadSession
from largeupload.transport.base import SliceResponse

SESSION_URL = "https://upload.example.com/sessions/sess-1"
LOCATION = "TEST_URL"


@dataclass
class RequestInfo:
    method: str
    url: str
    headers: dict[str, str]
    body: bytes | None

    @property
    def content_range(self) -> str:
        return self.headers.get("Content-Range", "")


def future_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)


class FakeUploadServer:
    """In-memory upload session endpoint.

    Accepts slices in order, answers 202 with the next expected range and
    201 with a Location header once the whole file has been received.
    """

    def __init__(self, file_size: int, final_body: dict[str, Any] | None = None):
        self.file_size = file_size
        self.final_body = final_body if final_body is not None else {"id": "TEST_ID"}
        self.data = bytearray()
        self.requests: list[RequestInfo] = []
        self.deleted = False
        self.pre_request: Callable[[RequestInfo], Any] | None = None

    @property
    def puts(self) -> list[RequestInfo]:
        return [request for request in self.requests if request.method == "PUT"]

    def _status_body(self) -> dict[str, Any]:
        ranges = [] if len(self.data) >= self.file_size else [f"{len(self.data)}-"]
        return {
            "expirationDateTime": future_expiry().isoformat(),
            "nextExpectedRanges": ranges,
        }

    async def __call__(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> SliceResponse:
        info = RequestInfo(method, url, dict(headers), body)
        self.requests.append(info)

        if self.pre_request is not None:
            action = self.pre_request(info)
            if isinstance(action, BaseException):
                raise action
            if action is not None:
                return action

        if method == "GET":
            return SliceResponse(200, {}, json.dumps(self._status_body()).encode())
        if method == "DELETE":
            self.deleted = True
            return SliceResponse(204)
        if method != "PUT":
            return SliceResponse(405)

        range_spec, total = info.content_range.removeprefix("bytes ").split("/")
        start, end = (int(part) for part in range_spec.split("-"))
        if start != len(self.data) or int(total) != self.file_size:
            return SliceResponse(416, {}, b'{"error": "range not satisfiable"}')
        assert body is not None and len(body) == end - start + 1

        self.data.extend(body)
        if len(self.data) >= self.file_size:
            return SliceResponse(
                201,
                {"Location": LOCATION, "Content-Type": "application/json"},
                json.dumps(self.final_body).encode(),
            )
        return SliceResponse(
            202,
            {"Content-Type": "application/json"},
            json.dumps(self._status_body()).encode(),
        )


@pytest.fixture
def upload_session() -> UploadSession:
    return UploadSession(url=SESSION_URL, expiry=future_expiry())


@pytest.fixture
def content() -> bytes:
    return bytes(range(256)) * 4  # 1024 bytes


@pytest.fixture
def server(content: bytes) -> FakeUploadServer:
    return FakeUploadServer(len(content))
