"""User response models."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from user_management.integrations.identity_provider.models import TokenResponse
from .domain import User


class UserResponse(BaseModel):
    """Registered user as returned to clients."""

    user_id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="Email address")
    roles: List[str] = Field(default_factory=list, description="Assigned role names")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            user_id=user.user_id,
            username=user.username,
            email=user.email,
            roles=user.roles,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class LoginResponse(BaseModel):
    """Token response returned on successful login."""

    access_token: str = Field(..., description="Access token")
    token_type: str = Field(..., description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    refresh_token: Optional[str] = Field(None, description="Refresh token")

    @classmethod
    def from_token(cls, token: TokenResponse) -> "LoginResponse":
        return cls(
            access_token=token.access_token,
            token_type=token.token_type,
            expires_in=token.expires_in,
            refresh_token=token.refresh_token,
        )


class LogoutResponse(BaseModel):
    """Acknowledgement returned on logout."""

    success: bool = True
    message: str = "Logged out"
