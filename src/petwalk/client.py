# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Low-level HTTP client for the petWalk local control API.

The door serves a tiny JSON API on port 8080:

    GET  /states  -> {"door": "open"|"closed", "system": "on"|"off"}
    PUT  /states  <- {"door": "open"|"close", "system": ..., "lastCallOk": ...}
    GET  /modes   -> {"brightnessSensor": bool, "motion_in": bool, ...}
    PUT  /modes   <- full mode mapping

Each call either returns the decoded body or raises a ``PetwalkError``
subclass. Nothing here caches state; see ``petwalk.accessory`` for that.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import aiohttp

from .const import (
    CONTENT_TYPE_JSON,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    ENDPOINT_MODES,
    ENDPOINT_STATES,
    MAX_CONTENT_LENGTH,
    MAX_REDIRECTS,
    METHOD_GET,
    METHOD_PUT,
    STATUS_ACCEPTED,
    STATUS_OK,
)
from .exceptions import DeviceConnectionError, DevicePayloadError, DeviceResponseError

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


@dataclass(frozen=True)
class Endpoint:
    """A request template bound to one device URL."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)


def create_session(*, timeout: float = DEFAULT_TIMEOUT) -> aiohttp.ClientSession:
    """Create the HTTP session shared by every door client in the process.

    The connector keeps connections alive between polls. Must be called from
    within the running event loop; close it with ``await session.close()``.
    """
    return aiohttp.ClientSession(
        connector=aiohttp.TCPConnector(),
        timeout=aiohttp.ClientTimeout(total=timeout),
    )


class PetwalkClient:
    """HTTP client for a single petWalk door.

    Example:
        async with PetwalkClient("192.168.1.50") as client:
            status = await client.get_door_status()
            await client.set_door_status({"door": "close", "system": "on", "lastCallOk": True})
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_content_length: int = MAX_CONTENT_LENGTH,
    ):
        """Initialize PetwalkClient.

        Args:
            host: IP address or hostname of the door.
            port: HTTP port (default 8080).
            session: Shared aiohttp session. If omitted, the client creates
                its own on first use and closes it in ``close()``.
            timeout: Seconds allowed for each request, connect included.
            max_content_length: Largest response body accepted, in bytes.
        """
        self._host = host
        self._port = port
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._max_content_length = max_content_length

        # IPv6 literals need brackets in a URL
        url_host = f"[{host}]" if ":" in host else host
        self._base_url = f"http://{url_host}:{port}/"
        json_headers = {"Content-Type": CONTENT_TYPE_JSON}
        self.state_request = Endpoint(METHOD_GET, self._base_url + ENDPOINT_STATES)
        self.state_change_request = Endpoint(
            METHOD_PUT, self._base_url + ENDPOINT_STATES, json_headers
        )
        self.config_request = Endpoint(METHOD_GET, self._base_url + ENDPOINT_MODES)
        self.config_change_request = Endpoint(
            METHOD_PUT, self._base_url + ENDPOINT_MODES, json_headers
        )

    @property
    def host(self) -> str:
        """The door's IP address or hostname."""
        return self._host

    @property
    def port(self) -> int:
        """The door's HTTP port."""
        return self._port

    @property
    def base_url(self) -> str:
        """Base URL all endpoints are bound to."""
        return self._base_url

    @property
    def timeout(self) -> float:
        """Seconds allowed for each request."""
        return self._timeout.total

    async def __aenter__(self) -> "PetwalkClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    # =========================================================================
    # API calls
    # =========================================================================

    async def get_door_status(self) -> dict[str, Any]:
        """GET /states. Returns the raw response body."""
        return await self._fetch_object(self.state_request)

    async def set_door_status(self, body: dict[str, Any]) -> None:
        """PUT /states with ``body``; the door answers 202 when accepted."""
        await self._send(self.state_change_request, body)

    async def get_config(self) -> dict[str, Any]:
        """GET /modes. Returns the raw response body."""
        return await self._fetch_object(self.config_request)

    async def set_config(self, body: dict[str, Any]) -> None:
        """PUT /modes with the full mode mapping; 202 when accepted."""
        await self._send(self.config_change_request, body)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _fetch_object(self, endpoint: Endpoint) -> dict[str, Any]:
        status, body = await self._request(endpoint)
        if status != STATUS_OK:
            raise DeviceResponseError(status, body)
        if not isinstance(body, dict):
            raise DevicePayloadError(
                f"Expected a JSON object from {endpoint.url}, got {body!r}"
            )
        return body

    async def _send(self, endpoint: Endpoint, body: dict[str, Any]) -> None:
        status, response_body = await self._request(endpoint, body)
        if status != STATUS_ACCEPTED:
            raise DeviceResponseError(status, response_body)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = create_session(timeout=self._timeout.total)
            self._owns_session = True
        return self._session

    async def _request(
        self, endpoint: Endpoint, body: Optional[dict[str, Any]] = None
    ) -> tuple[int, Any]:
        """Dispatch one request and return ``(status, decoded body)``."""
        session = self._get_session()
        data = json.dumps(body) if body is not None else None
        logger.debug(f"{endpoint.method} {endpoint.url} {data or ''}")
        try:
            async with session.request(
                endpoint.method,
                endpoint.url,
                data=data,
                headers=endpoint.headers,
                timeout=self._timeout,
                # aiohttp fails once the hop count reaches max_redirects
                max_redirects=MAX_REDIRECTS + 1,
            ) as response:
                raw = await self._read_body(response)
                return response.status, self._decode(raw)
        except asyncio.TimeoutError as err:
            raise DeviceConnectionError(
                f"Timed out talking to {endpoint.url}"
            ) from err
        except aiohttp.ClientError as err:
            raise DeviceConnectionError(
                f"{endpoint.method} {endpoint.url} failed: {err}"
            ) from err

    async def _read_body(self, response: aiohttp.ClientResponse) -> bytes:
        limit = self._max_content_length
        if response.content_length is not None and response.content_length > limit:
            raise DevicePayloadError(
                f"Response of {response.content_length} bytes exceeds {limit}"
            )
        chunks = []
        size = 0
        async for chunk in response.content.iter_chunked(_READ_CHUNK):
            size += len(chunk)
            if size > limit:
                raise DevicePayloadError(f"Response exceeds {limit} bytes")
            chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    def _decode(raw: bytes) -> Any:
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            # Keep the text so the caller can log it
            return raw.decode("utf-8", errors="replace")
