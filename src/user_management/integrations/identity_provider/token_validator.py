"""
Bearer token validation against the identity provider's signing keys.

Tokens must be signed by a key published in the provider's JWKS document
and carry the configured issuer and audience.
"""
from typing import Any, Dict, List, Optional, Sequence

import httpx
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from loguru import logger

from user_management.common.config.settings import Settings
from user_management.common.exceptions import IdentityProviderError, UnauthorizedError
from .cache import TokenCache

JWKS_ENDPOINT = "/.well-known/jwks.json"
JWKS_CACHE_KEY = "jwks"


class AccessTokenValidator:
    """
    Validates provider-issued JWT access tokens.

    Signing keys are fetched from the provider and cached for
    ``jwks_cache_ttl`` seconds. A token signed with a key id missing from
    the cached set triggers one refetch, which picks up rotated keys.
    """

    def __init__(
        self,
        base_url: str,
        issuer: str,
        audience: str,
        algorithms: Sequence[str] = ("RS256",),
        jwks_cache_ttl: int = 3600,
        cache: Optional[TokenCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0
    ):
        """
        Initialize the validator.

        Args:
            base_url: Provider base URL the JWKS document is served from
            issuer: Required ``iss`` claim
            audience: Required ``aud`` claim
            algorithms: Accepted signing algorithms
            jwks_cache_ttl: Seconds to keep fetched signing keys
            cache: Cache for the signing keys
            http_client: Pre-built client (must carry ``base_url``)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.issuer = issuer
        self.audience = audience
        self.algorithms = list(algorithms)
        self.jwks_cache_ttl = jwks_cache_ttl
        self.cache = cache or TokenCache(max_size=1, default_ttl_seconds=jwks_cache_ttl)

        self._http_client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout)
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AccessTokenValidator":
        """Build a validator from application settings."""
        return cls(
            base_url=settings.identity_provider_base_url,
            issuer=settings.provider_issuer,
            audience=settings.provider_audience,
            algorithms=settings.identity_provider_algorithms,
            jwks_cache_ttl=settings.jwks_cache_ttl_seconds,
            timeout=settings.identity_provider_timeout,
        )

    async def close(self):
        """Close HTTP client connections."""
        await self._http_client.aclose()

    async def validate(self, token: str) -> Dict[str, Any]:
        """
        Verify signature, expiry, issuer and audience of ``token``.

        Returns:
            The token claims

        Raises:
            UnauthorizedError: token is malformed, expired or not acceptable
            IdentityProviderError: signing keys could not be fetched
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise UnauthorizedError("Invalid access token") from e

        key_id = header.get("kid")
        if not key_id:
            raise UnauthorizedError("Invalid access token")

        key = await self._signing_key(key_id)
        if key is None:
            logger.warning(f"Access token signed with unknown key {key_id}")
            raise UnauthorizedError("Invalid access token")

        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError as e:
            raise UnauthorizedError("Access token has expired") from e
        except JWTError as e:
            logger.warning(f"Access token rejected: {e}")
            raise UnauthorizedError("Invalid access token") from e

        logger.debug(f"Access token validated for {claims.get('sub')}")
        return claims

    async def _signing_key(self, key_id: str) -> Optional[Dict[str, Any]]:
        keys = await self.cache.get(JWKS_CACHE_KEY)
        if keys is None or key_id not in keys:
            keys = await self._fetch_keys()
            await self.cache.set(JWKS_CACHE_KEY, keys, ttl_seconds=self.jwks_cache_ttl)
        return keys.get(key_id)

    async def _fetch_keys(self) -> Dict[str, Dict[str, Any]]:
        try:
            response = await self._http_client.get(JWKS_ENDPOINT)
            response.raise_for_status()
            document = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch identity provider signing keys: {e}")
            raise IdentityProviderError(
                "Unable to fetch identity provider signing keys",
                endpoint=JWKS_ENDPOINT
            ) from e

        published: List[Dict[str, Any]] = document.get("keys", [])
        keys = {
            key_data["kid"]: key_data
            for key_data in published
            if key_data.get("kid") and key_data.get("use", "sig") == "sig"
        }
        logger.debug(f"Fetched {len(keys)} signing key(s) from identity provider")
        return keys
