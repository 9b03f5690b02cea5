"""
Bearer token verification against an Auth0 tenant.

Chats are owned by the token's ``sub`` claim, so verifying the signature,
audience and issuer is the whole of identity: there is no local user table.
Signing keys come from the tenant's JWKS document and are cached by ``kid``.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx
from jose import JWTError, jwk, jwt
from jose.exceptions import ExpiredSignatureError

from app.core.config import Settings, settings as app_settings

logger = logging.getLogger(__name__)


class Auth0Error(Exception):
    pass


class Auth0TokenError(Auth0Error):
    """The bearer token cannot be trusted; answered with 401."""


class Auth0ConfigError(Auth0Error):
    """The server has no tenant to verify against; answered with 500."""


class JWKSCache:
    """Signing keys indexed by ``kid``, refetched after ``cache_duration_seconds``."""

    def __init__(self, cache_duration_seconds: int = 3600):
        self._keys: Dict[str, Any] = {}
        self._fetched_at: Optional[datetime] = None
        self._ttl = timedelta(seconds=cache_duration_seconds)
        self._lock = asyncio.Lock()

    def is_stale(self) -> bool:
        return self._fetched_at is None or datetime.now(timezone.utc) - self._fetched_at > self._ttl

    async def get_keys(self, jwks_url: str) -> Dict[str, Any]:
        async with self._lock:
            if self.is_stale():
                await self._fetch(jwks_url)
            return self._keys

    async def _fetch(self, jwks_url: str) -> None:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(jwks_url)
            response.raise_for_status()
            document = response.json()

        self._keys = {key["kid"]: key for key in document.get("keys", []) if "kid" in key}
        self._fetched_at = datetime.now(timezone.utc)
        logger.info(f"Fetched {len(self._keys)} signing keys from {jwks_url}")

    def invalidate(self) -> None:
        self._fetched_at = None


class Auth0TokenValidator:
    """Checks RS256 access tokens issued for this API."""

    algorithms = ["RS256"]

    def __init__(self, config: Optional[Settings] = None, jwks_cache: Optional[JWKSCache] = None):
        config = config or app_settings
        self.configured = config.USE_AUTH0
        self.audience = config.AUTH0_API_AUDIENCE
        self.issuer = config.AUTH0_ISSUER
        self.jwks_url = config.AUTH0_JWKS_URL
        self._jwks_cache = jwks_cache or JWKSCache()

    async def _signing_key(self, kid: str) -> Dict[str, Any]:
        keys = await self._jwks_cache.get_keys(self.jwks_url)
        if kid not in keys:
            # The tenant may have rotated keys since the last fetch
            self._jwks_cache.invalidate()
            keys = await self._jwks_cache.get_keys(self.jwks_url)
        if kid not in keys:
            raise Auth0TokenError(f"Unknown signing key {kid}")
        return keys[kid]

    async def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Verify ``token`` and return its claims.

        Raises:
            Auth0ConfigError: AUTH0_DOMAIN or AUTH0_API_AUDIENCE is unset
            Auth0TokenError: the token is malformed, expired, signed by an
                unknown key, or meant for another audience or issuer
        """
        if not self.configured:
            raise Auth0ConfigError("AUTH0_DOMAIN and AUTH0_API_AUDIENCE must be set")

        try:
            kid = jwt.get_unverified_header(token).get("kid")
            if not kid:
                raise Auth0TokenError("Token header has no kid")

            key = jwk.construct(await self._signing_key(kid))
            return jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError:
            raise Auth0TokenError("Token expired")
        except JWTError as e:
            raise Auth0TokenError(f"Token rejected: {e}")
        except httpx.HTTPError as e:
            raise Auth0TokenError(f"Signing keys unavailable: {e}")

    def get_user_id(self, payload: Dict[str, Any]) -> str:
        return payload.get("sub", "")


auth0_validator = Auth0TokenValidator()
