"""Pytest configuration and fixtures for user management tests."""

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from user_management.common.config.settings import Settings


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeTransaction:
    """Stand-in for an asyncpg transaction."""

    def __init__(self, rollback_error: Exception = None):
        self.start = AsyncMock()
        self.commit = AsyncMock()
        self.rollback = AsyncMock(side_effect=rollback_error)


class FakeDatabase:
    """Stand-in for DatabaseManager that counts acquired and released connections."""

    def __init__(self, connection):
        self.connection = connection
        self.acquired = 0
        self.released = 0

    @asynccontextmanager
    async def acquire(self):
        self.acquired += 1
        try:
            yield self.connection
        finally:
            self.released += 1


@pytest.fixture
def clock():
    """Fake clock starting at 2024-01-01T00:00:00Z."""
    return FakeClock()


@pytest.fixture
def transaction():
    """Fake transaction with successful start/commit/rollback."""
    return FakeTransaction()


@pytest.fixture
def connection(transaction):
    """Mock asyncpg connection handing out the fake transaction."""
    mock_connection = AsyncMock()
    mock_connection.transaction = MagicMock(return_value=transaction)
    mock_connection.fetchrow = AsyncMock()
    mock_connection.fetch = AsyncMock(return_value=[])
    mock_connection.fetchval = AsyncMock()
    mock_connection.execute = AsyncMock(return_value="INSERT 0 1")
    return mock_connection


@pytest.fixture
def database(connection):
    """Fake database manager around the mock connection."""
    return FakeDatabase(connection)


@pytest.fixture
def settings():
    """Settings pointing at a test provider tenant."""
    return Settings(
        environment="testing",
        identity_provider_domain="tenant.example.com",
        identity_provider_client_id="client-id",
        identity_provider_client_secret="client-secret",
    )
