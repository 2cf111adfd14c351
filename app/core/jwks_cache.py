"""
Process-wide cache of the identity provider's JSON Web Key Set.

Keys are fetched lazily, kept for ``jwks_cache_ttl_seconds`` and refetched
once when a token names a key id the cached set does not contain.
"""
import asyncio
import time
from typing import Dict, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import TokenVerificationError
from app.core.http_client import get_http_client
from app.core.logging_config import LogCategory, log_debug, log_info, log_warning


class JWKSCache:
    """
    In-memory JWKS keyed by ``kid``.

    Args:
        jwks_url: JWKS endpoint. Defaults to the configured Clerk endpoint.
        ttl_seconds: How long a fetched key set stays valid.
        client: Optional HTTP client (for testing). Defaults to the shared client.
    """

    def __init__(
        self,
        jwks_url: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.jwks_url = jwks_url or settings.effective_jwks_url
        self.ttl_seconds = ttl_seconds or settings.jwks_cache_ttl_seconds
        self._client = client
        self._keys: Dict[str, dict] = {}
        self._fetched_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        return time.monotonic() - self._fetched_at >= self.ttl_seconds

    def invalidate(self) -> None:
        """Drop the cached key set; the next lookup refetches."""
        self._keys = {}
        self._fetched_at = None
        log_debug("JWKS cache invalidated", category=LogCategory.SECURITY)

    async def _fetch(self) -> Dict[str, dict]:
        if not self.jwks_url:
            raise TokenVerificationError("Token verification is not configured")

        client = self._client or await get_http_client()
        try:
            response = await client.get(self.jwks_url)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            log_warning(f"Failed to fetch JWKS: {exc}", category=LogCategory.SECURITY)
            raise TokenVerificationError("Unable to fetch signing keys") from exc

        keys = {}
        for key in payload.get("keys", []):
            kid = key.get("kid")
            if kid:
                keys[kid] = key
        log_info("Fetched JWKS", category=LogCategory.SECURITY, key_count=len(keys))
        return keys

    async def refresh(self) -> None:
        async with self._lock:
            self._keys = await self._fetch()
            self._fetched_at = time.monotonic()

    async def get_key(self, kid: str) -> Optional[dict]:
        """Return the JWK for ``kid``, refetching at most once when it is unknown."""
        refreshed = False
        if self.is_stale:
            await self.refresh()
            refreshed = True

        key = self._keys.get(kid)
        if key is None and not refreshed:
            log_debug(f"JWKS cache MISS for kid={kid}, refetching", category=LogCategory.SECURITY)
            await self.refresh()
            key = self._keys.get(kid)
        return key


# Global JWKS cache instance
_jwks_cache: Optional[JWKSCache] = None


def get_jwks_cache() -> JWKSCache:
    """Get or create the global JWKS cache instance."""
    global _jwks_cache
    if _jwks_cache is None:
        _jwks_cache = JWKSCache()
    return _jwks_cache


def reset_jwks_cache() -> None:
    """Forget the global instance (configuration changes and tests)."""
    global _jwks_cache
    _jwks_cache = None
