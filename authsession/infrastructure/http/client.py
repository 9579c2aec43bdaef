from __future__ import annotations

from typing import Optional

import httpx

from authsession.settings import get_settings

_client: Optional[httpx.AsyncClient] = None

# every request goes to the same identity provider host
_LIMITS = httpx.Limits(max_connections=100, max_keepalive_connections=20)


async def open_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """
    Open the process-wide client used by the identity provider adapter.
    Calling it again returns the client already open.
    """
    global _client
    if _client is None:
        seconds = get_settings().provider_timeout_seconds if timeout is None else timeout
        _client = httpx.AsyncClient(timeout=httpx.Timeout(seconds), limits=_LIMITS)
    return _client


def get_http_client() -> httpx.AsyncClient:
    if _client is None:
        raise RuntimeError("provider HTTP client is not open; call open_http_client()")
    return _client


async def close_http_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
