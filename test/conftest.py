"""
Shared pytest fixtures for the IMS middleware tests.

Provides stub token providers and recording httpx transports so tests can
assert on the exact requests sent without touching the network.
"""

import json
from typing import Any, List, Optional

import httpx
import pytest

IMS_URL = "https://ims.example.com"
UAA_URL = "https://uaa.example.com/oauth/token"
ZONE_ID = "56e57707-cae0-4589-b62c-b222c462c1d3"
SUBTENANT_ID = "subtenant-1"


class StubUAA:
    """Token provider returning a fixed token, or raising a fixed error."""

    def __init__(self, access_token: str = "T", error: Optional[Exception] = None):
        self.access_token = access_token
        self.error = error
        self.calls = 0

    async def get_token(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return {"access_token": self.access_token, "token_type": "bearer"}


class RecordingTransport(httpx.MockTransport):
    """MockTransport answering every request with the same canned response."""

    def __init__(
        self,
        status_code: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        headers: Optional[dict] = None,
        error: Optional[Exception] = None,
    ):
        self.status_code = status_code
        self.json_body = json_body
        self.text = text
        self.headers = headers
        self.error = error
        self.requests: List[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        headers = dict(self.headers or {})
        content = b""
        if self.text is not None:
            content = self.text.encode("utf-8")
            headers.setdefault("content-type", "text/plain; charset=utf-8")
        elif self.json_body is not None:
            content = json.dumps(self.json_body).encode("utf-8")
            headers.setdefault("content-type", "application/json")
        headers["content-length"] = str(len(content))
        # Unread stream, like a real network response, so it can be streamed back out
        return httpx.Response(self.status_code, headers=headers, stream=httpx.ByteStream(content))

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def uaa():
    return StubUAA()


@pytest.fixture
def transport():
    return RecordingTransport(200, json_body={"type": "FeatureCollection", "features": []})


@pytest.fixture
def http_client(transport):
    return httpx.AsyncClient(transport=transport)
