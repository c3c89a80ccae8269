"""User models."""

from .domain import User
from .request import RegisterUserRequest, LoginRequest, LogoutRequest
from .response import UserResponse, LoginResponse, LogoutResponse

__all__ = [
    "User",
    "RegisterUserRequest",
    "LoginRequest",
    "LogoutRequest",
    "UserResponse",
    "LoginResponse",
    "LogoutResponse",
]
