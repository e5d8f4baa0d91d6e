"""
HTTP primitive used by adapter tools.

``request`` returns a :class:`HttpResponse` for every completed exchange,
whatever the status code; it only raises on transport failures and on URLs
that point at local or private networks.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlsplit

import httpx

from agent_tool_engine.errors import BlockedURLError, EngineError
from agent_tool_engine.logging import get_logger

logger = get_logger("http_client")

ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH"})
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass
class HttpResponse:
    """Status, decoded body and headers of an HTTP response."""

    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)


class HttpClient(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: Any = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> HttpResponse: ...


def is_blocked_url(url: str) -> bool:
    """True for non-http(s) URLs and for localhost, loopback or private hosts."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return True

    if parts.scheme.lower() not in ("http", "https"):
        return True

    host = (parts.hostname or "").lower()
    if not host:
        return True
    if host == "localhost" or host.endswith(".localhost"):
        return True

    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return False
    return ip.is_private or ip.is_loopback or ip.is_unspecified or ip.is_link_local


class HttpxHttpClient:
    """
    :class:`HttpClient` backed by ``httpx``.

    Example:
        http = HttpxHttpClient()
        resp = await http.request("GET", "https://api.example.com/items")
        print(resp.status, resp.body[:100])
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        allow_private: bool = False,
    ) -> None:
        self._client = client
        self._owns_client = client is None
        self.allow_private = allow_private

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(trust_env=False)
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: Any = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> HttpResponse:
        if not self.allow_private and is_blocked_url(url):
            raise BlockedURLError(f"refusing to access local or private address: {url}")

        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise EngineError(f"unsupported HTTP method: {method}")

        kwargs: dict[str, Any] = {"headers": headers, "timeout": timeout_seconds}
        if body is not None:
            kwargs["json"] = body

        logger.debug("%s %s", method, url)
        response = await self.client.request(method, url, **kwargs)
        return HttpResponse(
            status=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
