"""Tests for UserDirectory."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from asyncpg import UniqueViolationError

from user_management.common.database.runner import QueryRunner
from user_management.common.exceptions import DatabaseError, DuplicateUserError
from user_management.features.users.models.domain import User
from user_management.features.users.repositories.user_repository import (
    UserDirectory,
    INSERT_USER,
    INSERT_USER_ROLES,
    EMAIL_OR_USERNAME_EXISTS,
)

CREATED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def directory(database):
    return UserDirectory(QueryRunner(database))


@pytest.fixture
def user():
    return User(
        user_id=uuid4(),
        username="alice",
        email="alice@example.com",
        password_hash="salt:hash",
    )


def stored_row(user: User) -> dict:
    return {
        "user_id": user.user_id,
        "username": user.username,
        "password_hash": user.password_hash,
        "email": user.email,
        "created_at": CREATED_AT,
        "updated_at": CREATED_AT,
    }


class TestCreateUser:
    """Tests for create_user."""

    @pytest.mark.asyncio
    async def test_without_roles_inserts_only_user(self, directory, connection, transaction, user):
        """No role rows are written when no roles are requested."""
        connection.fetchrow.return_value = stored_row(user)

        created = await directory.create_user(user)

        connection.fetchrow.assert_awaited_once_with(
            INSERT_USER, user.user_id, "alice", "salt:hash", "alice@example.com"
        )
        connection.fetch.assert_not_awaited()
        transaction.commit.assert_awaited_once()
        assert created.created_at == CREATED_AT
        assert created.roles == []

    @pytest.mark.asyncio
    async def test_with_roles_returns_attached_roles(self, directory, connection, user):
        """Only roles that exist are attached; unknown names are skipped."""
        user.roles = ["admin", "ghost"]
        connection.fetchrow.return_value = stored_row(user)
        connection.fetch.return_value = [{"role_name": "admin"}]

        created = await directory.create_user(user)

        connection.fetch.assert_awaited_once_with(INSERT_USER_ROLES, user.user_id, ["admin", "ghost"])
        assert created.roles == ["admin"]

    @pytest.mark.asyncio
    async def test_role_failure_rolls_back_user(self, directory, connection, transaction, user):
        user.roles = ["admin"]
        connection.fetchrow.return_value = stored_row(user)
        connection.fetch.side_effect = OSError("connection reset")

        with pytest.raises(OSError):
            await directory.create_user(user)

        transaction.rollback.assert_awaited_once()
        transaction.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unique_violation_becomes_duplicate_user(self, directory, connection, transaction, user):
        """A store-level unique violation surfaces as DuplicateUserError."""
        connection.fetchrow.side_effect = UniqueViolationError("duplicate key value violates unique constraint")

        with pytest.raises(DuplicateUserError) as exc_info:
            await directory.create_user(user)

        assert isinstance(exc_info.value.__cause__, UniqueViolationError)
        transaction.rollback.assert_awaited_once()


class TestReads:
    """Tests for read operations."""

    @pytest.mark.asyncio
    async def test_get_user_by_username(self, directory, connection, user):
        connection.fetchrow.return_value = stored_row(user)
        connection.fetch.return_value = [{"role_name": "admin"}]

        found = await directory.get_user_by_username("alice")

        assert found.user_id == user.user_id
        assert found.password_hash == "salt:hash"
        assert found.roles == ["admin"]
        connection.transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_user_by_username_absent(self, directory, connection):
        """An unknown username yields None rather than an error."""
        connection.fetchrow.return_value = None

        assert await directory.get_user_by_username("nobody") is None
        connection.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_user_failure_is_database_error(self, directory, connection):
        connection.fetchrow.side_effect = OSError("timeout")

        with pytest.raises(DatabaseError) as exc_info:
            await directory.get_user_by_username("alice")

        assert exc_info.value.details["operation"] == "get_user_by_username"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exists", [True, False])
    async def test_email_or_username_exists(self, directory, connection, exists):
        connection.fetchval.return_value = exists

        assert await directory.email_or_username_exists("alice@example.com", "alice") is exists
        connection.fetchval.assert_awaited_once_with(EMAIL_OR_USERNAME_EXISTS, "alice@example.com", "alice")
