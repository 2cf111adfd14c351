"""
Unit tests for Clerk token verification and the JWKS cache.
"""
import time

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt

from app.core import security
from app.core.exceptions import TokenVerificationError
from app.core.jwks_cache import JWKSCache
from app.core.security import verify_clerk_token
from app.models.enums import UserRole
from app.schemas.user import AuthUser

JWKS_URL = "https://clerk.example.com/.well-known/jwks.json"


def _key_pair():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


PRIVATE_PEM, PUBLIC_PEM = _key_pair()


def _jwk(kid: str) -> dict:
    key = jwk.construct(PUBLIC_PEM, "RS256").to_dict()
    key["kid"] = kid
    return key


def _token(kid: str = "kid-1", **claims) -> str:
    now = int(time.time())
    payload = {"sub": "user_2abc", "iat": now, "exp": now + 300}
    payload.update(claims)
    return jwt.encode(payload, PRIVATE_PEM, algorithm="RS256", headers={"kid": kid})


class _JWKSServer:
    """Serves a mutable key list and counts fetches."""

    def __init__(self, *kids):
        self.kids = list(kids)
        self.calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        return httpx.Response(200, json={"keys": [_jwk(kid) for kid in self.kids]})

    def cache(self, **kwargs) -> JWKSCache:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return JWKSCache(jwks_url=JWKS_URL, ttl_seconds=3600, client=client, **kwargs)


class TestVerifyClerkToken:

    @pytest.mark.asyncio
    async def test_valid_token(self):
        server = _JWKSServer("kid-1")
        claims = await verify_clerk_token(_token(email="a@example.com"), cache=server.cache())
        assert claims["sub"] == "user_2abc"
        assert server.calls == 1

    @pytest.mark.asyncio
    async def test_keys_are_cached(self):
        server = _JWKSServer("kid-1")
        cache = server.cache()
        await verify_clerk_token(_token(), cache=cache)
        await verify_clerk_token(_token(), cache=cache)
        assert server.calls == 1

    @pytest.mark.asyncio
    async def test_unknown_kid_refetches_exactly_once(self):
        server = _JWKSServer("kid-1")
        cache = server.cache()
        await verify_clerk_token(_token(), cache=cache)

        server.kids.append("kid-2")
        claims = await verify_clerk_token(_token(kid="kid-2"), cache=cache)

        assert claims["sub"] == "user_2abc"
        assert server.calls == 2

    @pytest.mark.asyncio
    async def test_still_unknown_kid_is_rejected(self):
        server = _JWKSServer("kid-1")
        cache = server.cache()
        await verify_clerk_token(_token(), cache=cache)

        with pytest.raises(TokenVerificationError):
            await verify_clerk_token(_token(kid="rotated-away"), cache=cache)
        assert server.calls == 2

    @pytest.mark.asyncio
    async def test_expired_token(self):
        server = _JWKSServer("kid-1")
        token = _token(exp=int(time.time()) - 60)
        with pytest.raises(TokenVerificationError, match="expired"):
            await verify_clerk_token(token, cache=server.cache())

    @pytest.mark.asyncio
    async def test_issuer_mismatch(self, monkeypatch):
        monkeypatch.setattr(security.settings, "clerk_issuer", "https://clerk.example.com")
        server = _JWKSServer("kid-1")
        token = _token(iss="https://evil.example.com")
        with pytest.raises(TokenVerificationError):
            await verify_clerk_token(token, cache=server.cache())

    @pytest.mark.asyncio
    async def test_garbage_token(self):
        server = _JWKSServer("kid-1")
        with pytest.raises(TokenVerificationError):
            await verify_clerk_token("not-a-jwt", cache=server.cache())
        assert server.calls == 0

    @pytest.mark.asyncio
    async def test_jwks_outage(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
        cache = JWKSCache(jwks_url=JWKS_URL, client=client)
        with pytest.raises(TokenVerificationError):
            await verify_clerk_token(_token(), cache=cache)


class TestAuthUserFromClaims:

    def test_role_defaults_to_user(self):
        assert AuthUser.from_claims({"sub": "u1"}).role == UserRole.USER
        assert AuthUser.from_claims({"sub": "u1", "role": "superuser"}).role == UserRole.USER

    def test_admin_role(self):
        assert AuthUser.from_claims({"sub": "u1", "role": "admin"}).role == UserRole.ADMIN

    def test_missing_subject(self):
        with pytest.raises(ValueError):
            AuthUser.from_claims({"email": "a@example.com"})

    def test_display_name_falls_back_to_email(self):
        user = AuthUser.from_claims({"sub": "u1", "email": "A@Example.com"})
        assert user.display_name == "a@example.com"
