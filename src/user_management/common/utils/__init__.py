"""Shared utilities."""

from .datetime import utc_now, seconds_until
from .password import hash_password, verify_password

__all__ = [
    "utc_now",
    "seconds_until",
    "hash_password",
    "verify_password",
]
