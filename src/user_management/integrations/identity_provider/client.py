"""
Async HTTP client for the OAuth2/OIDC identity provider.

Speaks the provider's token, user-management and revocation endpoints.
Every non-2xx answer and every transport error surfaces as an
``IdentityProviderError``; nothing is retried here.
"""
from typing import Optional, Dict, Any

import httpx
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from user_management.common.config.settings import Settings
from user_management.common.exceptions import IdentityProviderError
from .models import ServiceToken, TokenResponse

TOKEN_ENDPOINT = "/oauth/token"
USERS_ENDPOINT = "/api/v2/users"
REVOKE_ENDPOINT = "/oauth/revoke"

CLIENT_CREDENTIALS_GRANT = "client_credentials"
PASSWORD_REALM_GRANT = "http://auth0.com/oauth/grant-type/password-realm"


class IdentityProviderClient:
    """
    Identity provider client built on ``httpx.AsyncClient``.

    Features:
    - Connection pooling through a shared async HTTP client
    - Client-credentials and resource-owner password token exchanges
    - Account creation through the management API
    - Refresh-token revocation
    """

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        audience: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize the provider client.

        Args:
            base_url: Provider base URL, e.g. ``https://tenant.auth0.com``
            client_id: OAuth2 client id of this service
            client_secret: OAuth2 client secret of this service
            audience: Audience requested for issued tokens
            timeout: Request timeout in seconds
            http_client: Pre-built client (must carry ``base_url``)
        """
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.audience = audience

        self._http_client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=100)
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityProviderClient":
        """Build a client from application settings."""
        return cls(
            base_url=settings.identity_provider_base_url,
            client_id=settings.identity_provider_client_id,
            client_secret=settings.identity_provider_client_secret.get_secret_value(),
            audience=settings.provider_audience,
            timeout=settings.identity_provider_timeout,
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - cleanup connections."""
        await self.close()

    async def close(self):
        """Close HTTP client connections."""
        await self._http_client.aclose()

    async def request_client_credentials_token(self) -> ServiceToken:
        """
        Exchange this service's client credentials for a management token.

        Returns:
            ServiceToken with the access token and its lifetime
        """
        data = await self._post(TOKEN_ENDPOINT, {
            "grant_type": CLIENT_CREDENTIALS_GRANT,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": self.audience,
        })
        logger.debug("Obtained service token from identity provider")
        return self._parse(ServiceToken, data, TOKEN_ENDPOINT)

    async def request_password_token(
        self,
        username: str,
        password: str,
        realm: str,
        scope: str
    ) -> TokenResponse:
        """
        Resource-owner password exchange for an end user.

        Args:
            username: Principal's login name at the provider
            password: Principal's password at the provider
            realm: Provider connection holding the account
            scope: Space-separated scopes

        Returns:
            TokenResponse with access and refresh tokens
        """
        data = await self._post(TOKEN_ENDPOINT, {
            "grant_type": PASSWORD_REALM_GRANT,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "username": username,
            "password": password,
            "realm": realm,
            "audience": self.audience,
            "scope": scope,
        })
        logger.info(f"Obtained principal token for {username}")
        return self._parse(TokenResponse, data, TOKEN_ENDPOINT)

    async def create_user(
        self,
        access_token: str,
        connection: str,
        email: str,
        password: str
    ) -> Dict[str, Any]:
        """
        Create an account through the management API.

        Args:
            access_token: Service token authorizing the call
            connection: Provider connection to create the account in
            email: Account email
            password: Account password

        Returns:
            The provider's representation of the created account
        """
        data = await self._post(
            USERS_ENDPOINT,
            {"connection": connection, "email": email, "password": password},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        logger.info(f"Created identity provider account for {email}")
        return data

    async def revoke_refresh_token(self, refresh_token: str) -> None:
        """Invalidate a refresh token using this service's client credentials."""
        await self._post(REVOKE_ENDPOINT, {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "token": refresh_token,
        })
        logger.info("Refresh token revoked at identity provider")

    async def _post(
        self,
        endpoint: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        try:
            response = await self._http_client.post(endpoint, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Identity provider request to {endpoint} failed: {e}")
            raise IdentityProviderError(
                "Identity provider unreachable",
                endpoint=endpoint
            ) from e

        if response.is_error:
            provider_error = _error_code(response)
            logger.warning(
                f"Identity provider rejected {endpoint} with {response.status_code}"
                f" ({provider_error or 'no error code'})"
            )
            raise IdentityProviderError(
                f"Identity provider rejected the request ({response.status_code})",
                endpoint=endpoint,
                provider_status=response.status_code,
                provider_error=provider_error
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise IdentityProviderError(
                "Identity provider returned a malformed response",
                endpoint=endpoint,
                provider_status=response.status_code
            ) from e

    @staticmethod
    def _parse(model, data: Dict[str, Any], endpoint: str):
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Unexpected token payload from {endpoint}: {e.error_count()} error(s)")
            raise IdentityProviderError(
                "Invalid token response from identity provider",
                endpoint=endpoint
            ) from e


def _error_code(response: httpx.Response) -> Optional[str]:
    """Pull the provider's error code out of an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    return body.get("error") or body.get("errorCode")
