"""User request models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class RegisterUserRequest(BaseModel):
    """Request model for user registration.

    Fields are optional here so that missing values reach the registration
    checks and produce their specific messages.
    """

    username: Optional[str] = Field(None, description="Unique username")
    password: Optional[str] = Field(None, description="Plaintext password")
    email: Optional[str] = Field(None, description="Email address")
    roles: List[str] = Field(default_factory=list, description="Requested role names")


class LoginRequest(BaseModel):
    """Request model for user login."""

    username: str = Field(..., description="Username")
    password: str = Field(..., description="Password")


class LogoutRequest(BaseModel):
    """Request model for user logout."""

    refresh_token: str = Field(..., description="Refresh token to revoke")
