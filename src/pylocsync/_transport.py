"""JSON-over-HTTP transport shared by the broker and routing endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pylocsync._constants import USER_AGENT
from pylocsync.exceptions import LocSyncTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, url: str, *, params: Mapping[str, str] | None = None) -> Any:
        ...

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> Any:
        ...


class HttpTransport:
    """aiohttp transport with a bounded per-request timeout.

    Every failure (connection error, timeout, non-2xx status, invalid JSON)
    is raised as :class:`LocSyncTransportError`, so callers never stall on
    a slow collaborator.
    """

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._headers = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }

    async def get_json(self, url: str, *, params: Mapping[str, str] | None = None) -> Any:
        return await self._request("GET", url, params=params)

    async def post_json(self, url: str, payload: Mapping[str, Any]) -> Any:
        return await self._request("POST", url, payload=payload)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        _logger.debug("%s %s", method, url)

        body = None if payload is None else json.dumps(dict(payload), separators=(",", ":"))
        headers = dict(self._headers)
        if body is not None:
            headers["content-type"] = "application/json"

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                data=body,
                headers=headers,
                timeout=self._timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise LocSyncTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=url,
                    )
        except LocSyncTransportError:
            raise
        except TimeoutError as exc:
            raise LocSyncTransportError(f"Request to {url} timed out", endpoint=url) from exc
        except aiohttp.ClientError as exc:
            raise LocSyncTransportError(f"Request to {url} failed: {exc}", endpoint=url) from exc
        except UnicodeDecodeError as exc:
            raise LocSyncTransportError(f"Undecodable response from {url}", endpoint=url) from exc

        if not text.strip():
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise LocSyncTransportError(
                f"Invalid JSON from {url}: {text[:200]}",
                status_code=resp.status,
                endpoint=url,
            ) from exc
