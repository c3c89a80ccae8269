"""
Base exception classes for the application.
"""
from typing import Optional, Any, Dict, List


class UserManagementError(Exception):
    """Base exception for all application exceptions."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code
        }


class ValidationError(UserManagementError):
    """Raised when validation fails."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[Dict[str, Any]]] = None,
        status_code: int = 400,
        **kwargs
    ):
        super().__init__(message, status_code=status_code, **kwargs)
        self.details["errors"] = errors or []


class ConflictError(UserManagementError):
    """Raised when there's a conflict with existing data."""

    def __init__(
        self,
        message: str = "Resource conflict",
        conflicting_field: Optional[str] = None,
        conflicting_value: Optional[Any] = None,
        **kwargs
    ):
        super().__init__(message, status_code=409, **kwargs)
        if conflicting_field:
            self.details["field"] = conflicting_field
        if conflicting_value:
            self.details["value"] = str(conflicting_value)


class UnauthorizedError(UserManagementError):
    """Raised when authentication fails or is required."""

    def __init__(
        self,
        message: str = "Authentication required",
        **kwargs
    ):
        super().__init__(message, status_code=401, **kwargs)


class ExternalServiceError(UserManagementError):
    """Raised when an external service call fails."""

    def __init__(
        self,
        message: str = "External service error",
        service: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, status_code=503, **kwargs)
        if service:
            self.details["service"] = service


class DatabaseError(UserManagementError):
    """Raised when a data-store operation fails."""

    def __init__(
        self,
        message: str = "Database operation failed",
        operation: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, status_code=500, **kwargs)
        if operation:
            self.details["operation"] = operation
