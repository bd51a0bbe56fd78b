from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiohttp
import pytest

from pylocsync._transport import HttpTransport
from pylocsync.exceptions import LocSyncTransportError


class FakeResponse:
    def __init__(self, status: int, body: bytes, charset: str = "utf-8") -> None:
        self.status = status
        self._body = body
        self._charset = charset

    async def text(self) -> str:
        return self._body.decode(self._charset)


class FakeHttpSession:
    """Stands in for ``aiohttp.ClientSession.request``."""

    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.requests: list[tuple[str, str, Any]] = []

    @asynccontextmanager
    async def request(self, method: str, url: str, **kwargs: Any) -> AsyncIterator[FakeResponse]:
        self.requests.append((method, url, kwargs.get("data")))
        if self._error is not None:
            raise self._error
        assert self._response is not None
        yield self._response


def _transport(session: FakeHttpSession) -> HttpTransport:
    return HttpTransport(session, timeout=1.0)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_get_json_decodes_body() -> None:
    session = FakeHttpSession(FakeResponse(200, b'{"latitude": 40.0, "longitude": -75.0}'))
    assert await _transport(session).get_json("http://broker.test/location") == {
        "latitude": 40.0,
        "longitude": -75.0,
    }


@pytest.mark.asyncio
async def test_empty_body_is_none() -> None:
    session = FakeHttpSession(FakeResponse(200, b"  "))
    assert await _transport(session).post_json("http://broker.test/location", {"timestamp": 1}) is None
    assert session.requests[0][2] == '{"timestamp":1}'


@pytest.mark.asyncio
async def test_non_2xx_carries_status() -> None:
    session = FakeHttpSession(FakeResponse(404, b"Not Found"))
    with pytest.raises(LocSyncTransportError) as excinfo:
        await _transport(session).get_json("http://broker.test/location")
    assert excinfo.value.status_code == 404
    assert excinfo.value.endpoint == "http://broker.test/location"


@pytest.mark.asyncio
async def test_undecodable_body_is_transport_error() -> None:
    session = FakeHttpSession(FakeResponse(200, b'{"latitude": 40.0, "longitude": \xff}'))
    with pytest.raises(LocSyncTransportError) as excinfo:
        await _transport(session).get_json("http://broker.test/location")
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


@pytest.mark.asyncio
async def test_invalid_json_is_transport_error() -> None:
    session = FakeHttpSession(FakeResponse(200, b"{not json"))
    with pytest.raises(LocSyncTransportError):
        await _transport(session).get_json("http://broker.test/location")


@pytest.mark.asyncio
async def test_client_error_is_wrapped() -> None:
    session = FakeHttpSession(error=aiohttp.ClientConnectionError("connection refused"))
    with pytest.raises(LocSyncTransportError) as excinfo:
        await _transport(session).get_json("http://broker.test/location")
    assert excinfo.value.status_code is None
