"""Dependency providers for the users feature."""

from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from user_management.common.exceptions import UnauthorizedError
from user_management.integrations.identity_provider import AccessTokenValidator
from .services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_token_validator(request: Request) -> AccessTokenValidator:
    return request.app.state.token_validator


async def require_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    validator: AccessTokenValidator = Depends(get_token_validator)
) -> Dict[str, Any]:
    """Require a valid provider-issued bearer token and return its claims."""
    if credentials is None:
        raise UnauthorizedError("Authentication required")
    return await validator.validate(credentials.credentials)
