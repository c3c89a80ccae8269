"""
Exception hierarchy for the user management service.
"""

from .base import (
    UserManagementError,
    ValidationError,
    ConflictError,
    UnauthorizedError,
    ExternalServiceError,
    DatabaseError,
)

from .domain import (
    ValidationErrorKind,
    ValidationFailure,
    RegistrationError,
    AuthenticationError,
    DuplicateUserError,
    IdentityProviderError,
)

__all__ = [
    # Base exceptions
    "UserManagementError",
    "ValidationError",
    "ConflictError",
    "UnauthorizedError",
    "ExternalServiceError",
    "DatabaseError",
    # Domain exceptions
    "ValidationErrorKind",
    "ValidationFailure",
    "RegistrationError",
    "AuthenticationError",
    "DuplicateUserError",
    "IdentityProviderError",
]
