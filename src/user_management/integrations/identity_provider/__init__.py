"""Identity provider integration."""

from .broker import IdentityBroker
from .cache import TokenCache, CacheEntry
from .client import IdentityProviderClient
from .credential_cache import (
    CredentialCache,
    CachedPrincipalToken,
    SERVICE_TOKEN_KEY,
    principal_key,
)
from .models import ServiceToken, TokenResponse
from .token_validator import AccessTokenValidator

__all__ = [
    "IdentityBroker",
    "IdentityProviderClient",
    "AccessTokenValidator",
    "TokenCache",
    "CacheEntry",
    "CredentialCache",
    "CachedPrincipalToken",
    "SERVICE_TOKEN_KEY",
    "principal_key",
    "ServiceToken",
    "TokenResponse",
]
