"""Tests for TokenCache and CredentialCache."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from user_management.common.exceptions import IdentityProviderError
from user_management.integrations.identity_provider.cache import TokenCache
from user_management.integrations.identity_provider.credential_cache import (
    CredentialCache,
    SERVICE_TOKEN_KEY,
    principal_key,
)
from user_management.integrations.identity_provider.models import ServiceToken, TokenResponse


def token(access_token="at", expires_in=3600, refresh_token="rt") -> TokenResponse:
    return TokenResponse(
        access_token=access_token,
        token_type="Bearer",
        expires_in=expires_in,
        refresh_token=refresh_token,
    )


@pytest.fixture
def provider():
    """Mock provider client."""
    mock_provider = AsyncMock()
    mock_provider.request_client_credentials_token = AsyncMock(
        return_value=ServiceToken(access_token="svc", expires_in=86400)
    )
    mock_provider.request_password_token = AsyncMock(return_value=token())
    return mock_provider


@pytest.fixture
def credential_cache(provider, clock):
    return CredentialCache(
        provider,
        realm="Username-Password-Authentication",
        scope="openid profile email",
        clock=clock,
    )


class TestTokenCache:
    """Expiry and bookkeeping of the in-process cache."""

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, clock):
        cache = TokenCache(clock=clock)
        await cache.set("k", "v", ttl_seconds=10)

        clock.advance(9)
        assert await cache.get("k") == "v"

        clock.advance(1)
        assert await cache.get("k") is None
        assert cache.get_stats()["size"] == 0

    @pytest.mark.asyncio
    async def test_non_positive_ttl_stores_nothing(self, clock):
        cache = TokenCache(clock=clock)
        await cache.set("k", "v", ttl_seconds=0)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_lru_eviction(self, clock):
        cache = TokenCache(max_size=2, clock=clock)
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.get("a")
        await cache.set("c", 3)

        assert await cache.get("b") is None
        assert await cache.get("a") == 1
        assert cache.get_stats()["evictions"] == 1

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, clock):
        cache = TokenCache(clock=clock)
        await cache.set("short", 1, ttl_seconds=5)
        await cache.set("long", 2, ttl_seconds=50)
        clock.advance(10)

        assert await cache.cleanup_expired() == 1
        assert await cache.get("long") == 2


class TestServiceToken:
    """Service token caching."""

    @pytest.mark.asyncio
    async def test_two_reads_within_ttl_fetch_once(self, credential_cache, provider, clock):
        """Reading the service token twice within its TTL performs one exchange."""
        assert await credential_cache.get_service_token() == "svc"
        clock.advance(60)
        assert await credential_cache.get_service_token() == "svc"

        provider.request_client_credentials_token.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_refetched_after_23_hours(self, credential_cache, provider, clock):
        await credential_cache.get_service_token()
        clock.advance(23 * 60 * 60)
        await credential_cache.get_service_token()

        assert provider.request_client_credentials_token.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_misses_fetch_once(self, credential_cache, provider):
        """Concurrent callers share one in-flight exchange."""
        async def slow_token():
            await asyncio.sleep(0.01)
            return ServiceToken(access_token="svc", expires_in=86400)

        provider.request_client_credentials_token.side_effect = slow_token

        results = await asyncio.gather(*(credential_cache.get_service_token() for _ in range(5)))

        assert results == ["svc"] * 5
        provider.request_client_credentials_token.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_provider_failure_propagates_and_caches_nothing(self, credential_cache, provider):
        provider.request_client_credentials_token.side_effect = IdentityProviderError("down")

        with pytest.raises(IdentityProviderError):
            await credential_cache.get_service_token()

        assert await credential_cache.service_cache.get(SERVICE_TOKEN_KEY) is None

    @pytest.mark.asyncio
    async def test_survives_principal_cache_eviction(self, provider, clock):
        """Filling the principal cache does not push out the service token."""
        credential_cache = CredentialCache(
            provider,
            realm="Username-Password-Authentication",
            scope="openid profile email",
            cache=TokenCache(max_size=3, clock=clock),
            clock=clock,
        )

        await credential_cache.get_service_token()
        for username in ("alice", "bob", "carol", "dave"):
            await credential_cache.get_principal_token(username, "Str0ng!Pass")
        assert await credential_cache.get_service_token() == "svc"

        provider.request_client_credentials_token.assert_awaited_once()
        assert provider.request_password_token.await_count == 4


class TestPrincipalToken:
    """Per-principal token caching and the safety margin."""

    @pytest.mark.asyncio
    async def test_exchange_uses_realm_and_scope(self, credential_cache, provider):
        result = await credential_cache.get_principal_token("alice@example.com", "hash")

        assert result.access_token == "at"
        provider.request_password_token.assert_awaited_once_with(
            "alice@example.com",
            "hash",
            realm="Username-Password-Authentication",
            scope="openid profile email",
        )

    @pytest.mark.asyncio
    async def test_301_seconds_remaining_is_fresh(self, credential_cache, provider, clock):
        await credential_cache.get_principal_token("alice", "pw")
        clock.advance(3600 - 301)

        await credential_cache.get_principal_token("alice", "pw")

        provider.request_password_token.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_300_seconds_remaining_is_stale(self, credential_cache, provider, clock):
        await credential_cache.get_principal_token("alice", "pw")
        clock.advance(3600 - 300)

        await credential_cache.get_principal_token("alice", "pw")

        assert provider.request_password_token.await_count == 2

    @pytest.mark.asyncio
    async def test_cached_response_returned_unchanged(self, credential_cache, provider, clock):
        first = await credential_cache.get_principal_token("alice", "pw")
        clock.advance(100)

        second = await credential_cache.get_principal_token("alice", "pw")

        assert second == first
        assert second.expires_in == 3600

    @pytest.mark.asyncio
    async def test_short_lived_token_not_cached(self, credential_cache, provider):
        provider.request_password_token.return_value = token(expires_in=300)

        await credential_cache.get_principal_token("alice", "pw")
        await credential_cache.get_principal_token("alice", "pw")

        assert provider.request_password_token.await_count == 2
        assert await credential_cache.cache.get(principal_key("alice")) is None

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, credential_cache, provider):
        await credential_cache.get_principal_token("alice", "pw")
        await credential_cache.get_principal_token("bob", "pw")

        assert provider.request_password_token.await_count == 2

    @pytest.mark.asyncio
    async def test_evict_principal(self, credential_cache, provider):
        await credential_cache.get_principal_token("alice", "pw")

        assert await credential_cache.evict_principal("alice") is True
        await credential_cache.get_principal_token("alice", "pw")

        assert provider.request_password_token.await_count == 2

    @pytest.mark.asyncio
    async def test_evict_by_refresh_token(self, credential_cache, provider):
        provider.request_password_token.side_effect = [
            token(access_token="a1", refresh_token="rt-alice"),
            token(access_token="b1", refresh_token="rt-bob"),
        ]
        await credential_cache.get_principal_token("alice", "pw")
        await credential_cache.get_principal_token("bob", "pw")

        assert await credential_cache.evict_by_refresh_token("rt-alice") == 1
        assert await credential_cache.cache.get(principal_key("alice")) is None
        assert await credential_cache.cache.get(principal_key("bob")) is not None
        assert await credential_cache.evict_by_refresh_token("unknown") == 0
