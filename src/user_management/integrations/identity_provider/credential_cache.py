"""
Token reuse in front of the identity provider.

Holds one service token and one token per principal, and refetches a
token only once its remaining lifetime drops to the safety margin.
"""
import asyncio
import weakref
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from loguru import logger

from user_management.common.utils.datetime import utc_now, seconds_until
from .cache import TokenCache, Clock
from .client import IdentityProviderClient
from .models import TokenResponse

SERVICE_TOKEN_KEY = "service:access_token"
PRINCIPAL_KEY_PREFIX = "principal:"

DEFAULT_SERVICE_TOKEN_TTL = 23 * 60 * 60
DEFAULT_SAFETY_MARGIN = 300


def principal_key(username: str) -> str:
    return f"{PRINCIPAL_KEY_PREFIX}{username}"


@dataclass(frozen=True)
class CachedPrincipalToken:
    """Principal token plus the absolute time it stops being valid."""

    token: TokenResponse
    token_expiry: datetime


class CredentialCache:
    """
    Caches provider tokens and refetches them on demand.

    The service token lives in its own single-entry cache, out of reach of
    principal-token eviction. Concurrent callers asking for the same key
    wait on a per-key lock, so at most one provider exchange is in flight
    per key.
    """

    def __init__(
        self,
        provider: IdentityProviderClient,
        realm: str,
        scope: str,
        cache: Optional[TokenCache] = None,
        service_token_ttl: int = DEFAULT_SERVICE_TOKEN_TTL,
        safety_margin: int = DEFAULT_SAFETY_MARGIN,
        clock: Clock = utc_now
    ):
        self.provider = provider
        self.realm = realm
        self.scope = scope
        self.clock = clock
        self.cache = cache or TokenCache(clock=clock)
        self.service_cache = TokenCache(max_size=1, default_ttl_seconds=service_token_ttl, clock=clock)
        self.service_token_ttl = service_token_ttl
        self.safety_margin = safety_margin

        self._key_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._key_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._key_locks[key] = lock
        return lock

    async def get_service_token(self) -> str:
        """
        Return the service access token, fetching it when absent.

        The token is kept for ``service_token_ttl`` seconds regardless of
        the lifetime the provider reports.
        """
        cached = await self.service_cache.get(SERVICE_TOKEN_KEY)
        if cached is not None:
            return cached

        async with self._lock_for(SERVICE_TOKEN_KEY):
            cached = await self.service_cache.get(SERVICE_TOKEN_KEY)
            if cached is not None:
                return cached

            logger.debug("Service token missing from cache, requesting a new one")
            token = await self.provider.request_client_credentials_token()
            await self.service_cache.set(SERVICE_TOKEN_KEY, token.access_token, ttl_seconds=self.service_token_ttl)
            return token.access_token

    async def get_principal_token(self, username: str, password: str) -> TokenResponse:
        """
        Return a token for ``username``, reusing a cached one while fresh.

        A cached token is fresh while more than ``safety_margin`` seconds of
        its lifetime remain. Otherwise a password exchange is performed and
        the result is stored for ``expires_in - safety_margin`` seconds.
        A token issued with ``expires_in <= safety_margin`` is returned but
        not stored.
        """
        key = principal_key(username)
        token = await self._fresh_principal_token(key)
        if token is not None:
            return token

        async with self._lock_for(key):
            token = await self._fresh_principal_token(key)
            if token is not None:
                return token

            issued_at = self.clock()
            token = await self.provider.request_password_token(
                username, password, realm=self.realm, scope=self.scope
            )
            ttl = token.expires_in - self.safety_margin
            if ttl > 0:
                await self.cache.set(
                    key,
                    CachedPrincipalToken(
                        token=token,
                        token_expiry=issued_at + timedelta(seconds=token.expires_in)
                    ),
                    ttl_seconds=ttl
                )
            else:
                logger.debug(f"Token for {username} expires within the safety margin, not caching")
            return token

    async def _fresh_principal_token(self, key: str) -> Optional[TokenResponse]:
        entry = await self.cache.get(key)
        if entry is None:
            return None
        if seconds_until(entry.token_expiry, self.clock()) > self.safety_margin:
            return entry.token
        return None

    async def evict_principal(self, username: str) -> bool:
        """Forget the cached token for ``username``."""
        return await self.cache.delete(principal_key(username))

    async def evict_by_refresh_token(self, refresh_token: str) -> int:
        """
        Forget every principal token carrying ``refresh_token``.

        Returns:
            Number of entries removed
        """
        keys = await self.cache.find_keys(
            lambda key, value: key.startswith(PRINCIPAL_KEY_PREFIX)
            and isinstance(value, CachedPrincipalToken)
            and value.token.refresh_token == refresh_token
        )
        for key in keys:
            await self.cache.delete(key)
        if keys:
            logger.debug(f"Evicted {len(keys)} cached principal token(s) after revocation")
        return len(keys)
