import json
from http import HTTPStatus
from typing import Any

import httpx

from geo_region.clients.base import BaseGeolocationClient, FetchResult
from geo_region.config import Settings


class MockResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text

    def json(self) -> Any:
        return json.loads(self.text)


class MockAsyncClient:
    """Minimal async context-manager mock for httpx.AsyncClient.

    Requested URLs are appended to `calls` so tests can inspect them.
    """

    def __init__(self, response: MockResponse, calls: list[str] | None = None, **kwargs: Any) -> None:
        self._response = response
        self.calls = calls if calls is not None else []
        self.kwargs = kwargs

    async def __aenter__(self) -> "MockAsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def get(self, url: str) -> MockResponse:
        self.calls.append(url)
        return self._response


class FailingAsyncClient:
    """Async client that raises a RequestError on enter to simulate network failure."""

    def __init__(self, url: str, *args: Any, **kwargs: Any) -> None:
        self._url = url

    async def __aenter__(self) -> "FailingAsyncClient":
        request = httpx.Request("GET", self._url)
        raise httpx.RequestError("Network failure", request=request)

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def get(self, url: str) -> MockResponse:
        return MockResponse(status_code=HTTPStatus.OK, payload={})


class TimingOutAsyncClient(FailingAsyncClient):
    async def get(self, url: str) -> MockResponse:
        raise httpx.ReadTimeout("timed out", request=httpx.Request("GET", url))

    async def __aenter__(self) -> "TimingOutAsyncClient":
        return self


class RecordingGeolocationClient(BaseGeolocationClient):
    """Test double for a geolocation backend returning a fixed result."""

    def __init__(self, result: FetchResult) -> None:
        self._result = result
        self.calls: list[tuple[str, Settings]] = []

    async def fetch_location(self, ip: str, settings: Settings) -> FetchResult:
        self.calls.append((ip, settings))
        return self._result
