"""User routers."""

from .v1 import router

__all__ = ["router"]
