"""Database access for the user management service."""

from .connection import DatabaseManager
from .runner import QueryRunner, UnitOfWork

__all__ = [
    "DatabaseManager",
    "QueryRunner",
    "UnitOfWork",
]
