"""
Application exception handlers.

Maps service exceptions to JSON responses. Unexpected exceptions collapse to
a generic message; the exception text is only exposed outside production.
"""
from typing import Dict, Any, Optional, Callable
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from .exceptions import UserManagementError

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request."


def default_response_formatter(
    message: str,
    errors: Optional[list] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Default error response formatter."""
    return {
        "success": False,
        "message": message,
        "errors": errors or [],
        "data": None,
        "metadata": metadata or {}
    }


class ExceptionHandlerRegistry:
    """Registry for the application's exception handlers."""

    def __init__(
        self,
        response_formatter: Optional[Callable[..., Dict[str, Any]]] = None,
        is_production: bool = True
    ):
        """
        Initialize exception handler registry.

        Args:
            response_formatter: Function to format error responses
            is_production: Whether running in production mode
        """
        self.response_formatter = response_formatter or default_response_formatter
        self.is_production = is_production

    def register_handlers(self, app: FastAPI) -> None:
        """Register exception handlers for the application.

        Args:
            app: FastAPI application instance
        """
        @app.exception_handler(UserManagementError)
        async def service_exception_handler(request: Request, exc: UserManagementError):
            """Handle service exceptions."""
            if exc.status_code >= 500:
                logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
                message = exc.message if not self.is_production else GENERIC_ERROR_MESSAGE
                errors = [exc.to_dict()] if not self.is_production else []
            else:
                message = exc.message
                errors = [exc.to_dict()]

            return JSONResponse(
                status_code=exc.status_code,
                content=self.response_formatter(message=message, errors=errors)
            )

        @app.exception_handler(RequestValidationError)
        async def request_validation_handler(request: Request, exc: RequestValidationError):
            """Handle malformed request bodies."""
            return JSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content=self.response_formatter(
                    message="Invalid request body",
                    errors=[
                        {"loc": list(error.get("loc", [])), "message": error.get("msg")}
                        for error in exc.errors()
                    ]
                )
            )

        @app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle unexpected exceptions."""
            logger.opt(exception=exc).error(f"Unhandled exception on {request.url.path}")

            message = GENERIC_ERROR_MESSAGE
            if not self.is_production:
                message = f"{message} {exc}"

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=self.response_formatter(message=message)
            )


def register_exception_handlers(
    app: FastAPI,
    response_formatter: Optional[Callable[..., Dict[str, Any]]] = None,
    is_production: bool = True
) -> None:
    """
    Register exception handlers for a FastAPI application.

    Args:
        app: FastAPI application instance
        response_formatter: Custom response formatter function
        is_production: Whether running in production mode
    """
    registry = ExceptionHandlerRegistry(response_formatter, is_production)
    registry.register_handlers(app)
