"""Mediates between local identities and the identity provider."""
from typing import Any, Dict, Protocol

from loguru import logger

from .client import IdentityProviderClient
from .credential_cache import CredentialCache
from .models import TokenResponse

DEFAULT_CONNECTION = "Username-Password-Authentication"


class PrincipalRegistration(Protocol):
    email: str
    password: str


class IdentityBroker:
    """
    Registration, token exchange and session revocation at the provider.

    Holds no state of its own beyond its collaborators.
    """

    def __init__(
        self,
        provider: IdentityProviderClient,
        credential_cache: CredentialCache,
        connection: str = DEFAULT_CONNECTION
    ):
        self.provider = provider
        self.credential_cache = credential_cache
        self.connection = connection

    async def register_principal(self, request: PrincipalRegistration) -> Dict[str, Any]:
        """Create the provider account for ``request.email`` / ``request.password``."""
        access_token = await self.credential_cache.get_service_token()
        return await self.provider.create_user(
            access_token,
            connection=self.connection,
            email=request.email,
            password=request.password
        )

    async def exchange_credentials(self, username: str, password: str) -> TokenResponse:
        return await self.credential_cache.get_principal_token(username, password)

    async def revoke_session(self, refresh_token: str) -> None:
        """
        Revoke ``refresh_token`` and forget cached tokens that carry it.

        The cache is only touched once the provider has accepted the
        revocation.
        """
        await self.provider.revoke_refresh_token(refresh_token)
        evicted = await self.credential_cache.evict_by_refresh_token(refresh_token)
        logger.info(f"Session revoked ({evicted} cached token(s) evicted)")
