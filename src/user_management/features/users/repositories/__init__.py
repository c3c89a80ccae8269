"""User repositories."""

from .user_repository import UserDirectory

__all__ = ["UserDirectory"]
