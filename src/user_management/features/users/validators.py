"""
Registration input checks.

Each check returns a ``ValidationFailure`` describing the first problem
found, or ``None`` when the input passes.
"""
import re
from typing import Optional

from user_management.common.exceptions import ValidationErrorKind, ValidationFailure
from .models.request import RegisterUserRequest

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^\da-zA-Z]).{8,}$")
EMAIL_PATTERN = re.compile(r"^[\w\-.]+@([\w-]+\.)+[\w-]{2,4}$")

USERNAME_REQUIRED = "Username is required."
PASSWORD_REQUIRED = "Password is required."
EMAIL_REQUIRED = "Email is required."
ALREADY_TAKEN = "Username is already taken."
WEAK_PASSWORD = (
    "Password is not strong enough. It should be at least 8 characters long and contain "
    "at least one uppercase letter, one lowercase letter, one digit, and one special character."
)
INVALID_EMAIL = "Invalid email address."
INVALID_CREDENTIALS = "Invalid username or password."


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def check_required_fields(request: RegisterUserRequest) -> Optional[ValidationFailure]:
    """Username, password and email must be non-blank, checked in that order."""
    for field, message in (
        ("username", USERNAME_REQUIRED),
        ("password", PASSWORD_REQUIRED),
        ("email", EMAIL_REQUIRED),
    ):
        if is_blank(getattr(request, field)):
            return ValidationFailure(ValidationErrorKind.MISSING_FIELD, message, field=field)
    return None


def check_password_strength(password: str) -> Optional[ValidationFailure]:
    if PASSWORD_PATTERN.fullmatch(password):
        return None
    return ValidationFailure(ValidationErrorKind.WEAK_PASSWORD, WEAK_PASSWORD, field="password")


def check_email_format(email: str) -> Optional[ValidationFailure]:
    if EMAIL_PATTERN.fullmatch(email):
        return None
    return ValidationFailure(ValidationErrorKind.INVALID_EMAIL, INVALID_EMAIL, field="email")


def already_taken() -> ValidationFailure:
    return ValidationFailure(ValidationErrorKind.ALREADY_TAKEN, ALREADY_TAKEN, field="username")


def invalid_credentials() -> ValidationFailure:
    return ValidationFailure(ValidationErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS)
