"""
Bearer token verification for Clerk-issued JWTs.
"""
from typing import Any, Dict, Optional

from jose import jwt, JWTError, ExpiredSignatureError

from app.core.config import settings
from app.core.exceptions import TokenVerificationError
from app.core.jwks_cache import JWKSCache, get_jwks_cache
from app.core.logging_config import LogCategory, log_warning

ALGORITHM = "RS256"


async def verify_clerk_token(token: str, cache: Optional[JWKSCache] = None) -> Dict[str, Any]:
    """
    Verify a token's signature, expiry and issuer and return its claims.

    Raises:
        TokenVerificationError: the token is malformed, expired, signed by an
            unknown key or issued by someone else.
    """
    if not token:
        raise TokenVerificationError("Missing bearer token")

    try:
        header = jwt.get_unverified_header(token)
    except JWTError as exc:
        raise TokenVerificationError("Malformed token") from exc

    if header.get("alg") != ALGORITHM:
        raise TokenVerificationError(f"Unsupported token algorithm: {header.get('alg')}")

    kid = header.get("kid")
    if not kid:
        raise TokenVerificationError("Token has no key id")

    cache = cache or get_jwks_cache()
    key = await cache.get_key(kid)
    if key is None:
        log_warning("Token signed with unknown key", category=LogCategory.SECURITY, kid=kid)
        raise TokenVerificationError("Unknown signing key")

    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=[ALGORITHM],
            issuer=settings.clerk_issuer or None,
            options={"verify_aud": False},
        )
    except ExpiredSignatureError as exc:
        raise TokenVerificationError("Token has expired") from exc
    except JWTError as exc:
        raise TokenVerificationError(f"Invalid token: {exc}") from exc

    if not claims.get("sub"):
        raise TokenVerificationError("Token has no subject")
    return claims
