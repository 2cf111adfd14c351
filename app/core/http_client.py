"""
Process-wide ``httpx.AsyncClient`` for small outbound requests.

The JWKS cache fetches signing keys through it. Immich transfers open their
own client per call because asset streams outlive a single request.
"""
import asyncio
from typing import Optional

import httpx

from app import __version__
from app.core.logging_config import log_info

USER_AGENT = f"thisday/{__version__}"

# Key sets are tiny; fail fast rather than holding a request open
DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)
DEFAULT_LIMITS = httpx.Limits(max_connections=10, max_keepalive_connections=5)

_client: Optional[httpx.AsyncClient] = None
_client_lock: Optional[asyncio.Lock] = None


def _lock() -> asyncio.Lock:
    global _client_lock
    if _client_lock is None:
        _client_lock = asyncio.Lock()
    return _client_lock


def build_http_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """New client with the service defaults. ``transport`` is for tests."""
    return httpx.AsyncClient(
        timeout=DEFAULT_TIMEOUT,
        limits=DEFAULT_LIMITS,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


async def get_http_client() -> httpx.AsyncClient:
    """Shared client, created on first use and recreated after ``close_http_client``."""
    global _client
    if _client is not None and not _client.is_closed:
        return _client
    async with _lock():
        if _client is None or _client.is_closed:
            _client = build_http_client()
            log_info("Shared HTTP client created", user_agent=USER_AGENT)
    return _client


async def close_http_client() -> None:
    """Release pooled connections. Called from the app lifespan."""
    global _client
    async with _lock():
        client, _client = _client, None
    if client is not None and not client.is_closed:
        await client.aclose()
        log_info("Shared HTTP client closed")
