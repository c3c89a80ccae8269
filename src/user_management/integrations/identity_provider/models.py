"""Token payloads returned by the identity provider."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ServiceToken(BaseModel):
    """Client-credentials token authenticating this service to the provider."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    expires_in: int = Field(..., description="Lifetime in seconds at issue time")
    token_type: str = "Bearer"


class TokenResponse(BaseModel):
    """Resource-owner token response for an end user."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Lifetime in seconds at issue time")
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None
    scope: Optional[str] = None
