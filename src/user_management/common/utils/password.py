"""Password hashing utilities.

Passwords are hashed with PBKDF2-HMAC-SHA256 and stored as
``base64(salt):base64(hash)``.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

ITERATIONS = 10000
SALT_SIZE = 16
HASH_SIZE = 32
SEPARATOR = ":"


def _kdf(salt: bytes) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=HASH_SIZE,
        salt=salt,
        iterations=ITERATIONS,
    )


def hash_password(password: str) -> str:
    """
    Hash a plaintext password with a fresh random salt.

    Args:
        password: The plaintext password.

    Returns:
        The salt and derived key, base64-encoded and joined by ``:``.
    """
    salt = os.urandom(SALT_SIZE)
    derived = _kdf(salt).derive(password.encode("utf-8"))
    return (
        base64.b64encode(salt).decode("ascii")
        + SEPARATOR
        + base64.b64encode(derived).decode("ascii")
    )


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    The comparison is constant-time. A malformed stored hash never matches.
    """
    try:
        salt_part, hash_part = hashed_password.split(SEPARATOR)
        salt = base64.b64decode(salt_part, validate=True)
        stored_hash = base64.b64decode(hash_part, validate=True)
    except (ValueError, binascii.Error, AttributeError):
        return False

    try:
        _kdf(salt).verify(password.encode("utf-8"), stored_hash)
    except InvalidKey:
        return False
    return True
