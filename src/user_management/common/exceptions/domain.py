"""
Domain exceptions and validation results for user registration and login.

Validation checks return a ``ValidationFailure`` (or ``None``) instead of
raising; ``RegistrationError`` and ``AuthenticationError`` carry a failure
across the service boundary so the HTTP layer can map its kind to a status
code.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Any

from .base import ValidationError, ConflictError, UnauthorizedError, ExternalServiceError


class ValidationErrorKind(str, Enum):
    """Closed set of registration and login failures."""
    MISSING_FIELD = "missing_field"
    WEAK_PASSWORD = "weak_password"
    INVALID_EMAIL = "invalid_email"
    ALREADY_TAKEN = "already_taken"
    INVALID_CREDENTIALS = "invalid_credentials"


STATUS_CODES = {
    ValidationErrorKind.MISSING_FIELD: 422,
    ValidationErrorKind.WEAK_PASSWORD: 422,
    ValidationErrorKind.INVALID_EMAIL: 422,
    ValidationErrorKind.ALREADY_TAKEN: 409,
    ValidationErrorKind.INVALID_CREDENTIALS: 401,
}


@dataclass(frozen=True)
class ValidationFailure:
    """A single user-facing validation failure."""
    kind: ValidationErrorKind
    message: str
    field: Optional[str] = None

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class RegistrationError(ValidationError):
    """Raised by the registration service when a request is rejected."""

    def __init__(self, failure: ValidationFailure):
        errors = [{"kind": failure.kind.value, "field": failure.field}]
        super().__init__(
            failure.message,
            errors=errors,
            status_code=failure.status_code,
            code=failure.kind.name,
        )
        self.failure = failure

    @property
    def kind(self) -> ValidationErrorKind:
        return self.failure.kind


class AuthenticationError(UnauthorizedError):
    """Raised by the login flow when credentials are rejected."""

    def __init__(self, failure: ValidationFailure):
        super().__init__(
            failure.message,
            code=failure.kind.name,
            details={"errors": [{"kind": failure.kind.value, "field": failure.field}]},
        )
        self.failure = failure

    @property
    def kind(self) -> ValidationErrorKind:
        return self.failure.kind


class DuplicateUserError(ConflictError):
    """Raised when the store rejects a user because of a unique constraint."""

    def __init__(self, constraint: Optional[str] = None, **kwargs):
        super().__init__("User already exists", conflicting_field=constraint, **kwargs)
        self.constraint = constraint


class IdentityProviderError(ExternalServiceError):
    """Opaque failure returned by, or while talking to, the identity provider."""

    def __init__(
        self,
        message: str = "Identity provider request failed",
        endpoint: Optional[str] = None,
        provider_status: Optional[int] = None,
        provider_error: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(message, service="identity_provider", **kwargs)
        self.endpoint = endpoint
        self.provider_status = provider_status
        if endpoint:
            self.details["endpoint"] = endpoint
        if provider_status is not None:
            self.details["provider_status"] = provider_status
        if provider_error is not None:
            self.details["provider_error"] = provider_error
