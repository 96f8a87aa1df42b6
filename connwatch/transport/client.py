"""httpx-based transport for connectivity probes.

``get`` returns a TransportResponse for any HTTP status or raises one of the
errors in ``connwatch.transport.errors``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import httpx

from connwatch.transport.errors import (
    MalformedConfigurationError,
    TransportConnectionError,
    TransportTimeout,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    status_code: int


@runtime_checkable
class HttpTransport(Protocol):
    """Capability consumed by the probe: one GET, which may fail or hang."""

    async def get(
        self, url: str, headers: Mapping[str, str] | None = None,
    ) -> TransportResponse: ...


def parse_endpoint(url: str) -> httpx.URL:
    """Parse and validate an absolute http(s) URL."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise MalformedConfigurationError(url, str(e)) from e
    if parsed.scheme not in ("http", "https"):
        raise MalformedConfigurationError(url, "scheme must be http or https")
    if not parsed.host:
        raise MalformedConfigurationError(url, "missing host")
    return parsed


class HttpxTransport:
    """Async httpx client used in production.

    The client is created on first use and reused across probes. Timeouts are
    enforced by the probe; ``timeout`` here is only a backstop for the client.
    """

    def __init__(
        self,
        timeout: float | None = None,
        follow_redirects: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._follow_redirects = follow_redirects
        self._transport = transport  # e.g. httpx.MockTransport in tests
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=self._follow_redirects,
                transport=self._transport,
            )
        return self._client

    async def get(
        self, url: str, headers: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        """Perform a GET and return its status code."""
        try:
            resp = await self._get_client().get(url, headers=dict(headers or {}))
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise MalformedConfigurationError(url, str(e)) from e
        except httpx.TimeoutException as e:
            raise TransportTimeout(f"Request to {url} timed out") from e
        except (httpx.ConnectError, httpx.NetworkError, httpx.RemoteProtocolError) as e:
            raise TransportConnectionError(f"Connection to {url} failed: {e}") from e
        return TransportResponse(status_code=resp.status_code)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP transport closed")
