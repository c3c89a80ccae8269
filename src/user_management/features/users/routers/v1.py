"""
User registration and session endpoints.

``/register`` and ``/logout`` require a bearer token issued by the
identity provider.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from loguru import logger

from ..dependencies import get_user_service, require_bearer_token
from ..models.request import RegisterUserRequest, LoginRequest, LogoutRequest
from ..models.response import UserResponse, LoginResponse, LogoutResponse
from ..services.user_service import UserService

router = APIRouter()


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
    description="Create a local user and the matching identity provider account",
    dependencies=[Depends(require_bearer_token)]
)
async def register(
    request: RegisterUserRequest,
    service: UserService = Depends(get_user_service)
) -> UserResponse:
    user = await service.register_user(request)
    return UserResponse.from_user(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Login",
    description="Verify credentials and obtain provider tokens"
)
async def login(
    request: LoginRequest,
    service: UserService = Depends(get_user_service)
) -> LoginResponse:
    token = await service.login(request.username, request.password)
    return LoginResponse.from_token(token)


@router.post(
    "/logout",
    response_model=LogoutResponse,
    status_code=status.HTTP_200_OK,
    summary="Logout",
    description="Revoke the refresh token of the current session"
)
async def logout(
    request: LogoutRequest,
    claims: Dict[str, Any] = Depends(require_bearer_token),
    service: UserService = Depends(get_user_service)
) -> LogoutResponse:
    await service.logout(request.refresh_token)
    logger.info(f"User {claims.get('sub')} logged out")
    return LogoutResponse()
