"""
User directory: persistence of users and their role memberships.
"""

from typing import Optional, List

from asyncpg import Connection, UniqueViolationError
from loguru import logger

from user_management.common.database.runner import QueryRunner
from user_management.common.exceptions import DatabaseError, DuplicateUserError

from ..models.domain import User

INSERT_USER = """
    INSERT INTO users (user_id, username, password_hash, email, created_at, updated_at)
    VALUES ($1, $2, $3, $4, now(), now())
    RETURNING user_id, username, password_hash, email, created_at, updated_at
"""

# Unknown role names match no row in roles and are skipped.
INSERT_USER_ROLES = """
    WITH inserted AS (
        INSERT INTO user_roles (user_id, role_id, created_at, updated_at)
        SELECT $1, role_id, now(), now()
        FROM roles
        WHERE role_name = ANY($2::text[])
        ON CONFLICT DO NOTHING
        RETURNING role_id
    )
    SELECT r.role_name
    FROM inserted i
    JOIN roles r ON r.role_id = i.role_id
    ORDER BY r.role_name
"""

SELECT_USER_BY_USERNAME = """
    SELECT user_id, username, password_hash, email, created_at, updated_at
    FROM users
    WHERE username = $1
"""

SELECT_USER_ROLES = """
    SELECT r.role_name
    FROM user_roles ur
    JOIN roles r ON r.role_id = ur.role_id
    WHERE ur.user_id = $1
    ORDER BY r.role_name
"""

EMAIL_OR_USERNAME_EXISTS = """
    SELECT EXISTS(SELECT 1 FROM users WHERE email = $1 OR username = $2)
"""


class UserDirectory:
    """Repository for user data access."""

    def __init__(self, runner: QueryRunner):
        self.runner = runner

    async def create_user(self, user: User) -> User:
        """
        Insert ``user`` and its resolvable roles in one transaction.

        Returns the stored user with server-assigned timestamps and the
        role names actually attached.

        Raises:
            DuplicateUserError: username or email already stored
        """
        async def _create(connection: Connection) -> User:
            record = await connection.fetchrow(
                INSERT_USER, user.user_id, user.username, user.password_hash, user.email
            )
            roles: List[str] = []
            if user.roles:
                rows = await connection.fetch(INSERT_USER_ROLES, user.user_id, list(user.roles))
                roles = [row["role_name"] for row in rows]
            return User.from_record(record, roles)

        try:
            created = await self.runner.run_in_transaction(_create, operation="create_user")
        except UniqueViolationError as e:
            raise DuplicateUserError(constraint=getattr(e, "constraint_name", None)) from e

        logger.info(f"Created user {created.username} with {len(created.roles)} role(s)")
        return created

    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get a user by username, or None when there is no match."""
        async def _get(connection: Connection) -> Optional[User]:
            record = await connection.fetchrow(SELECT_USER_BY_USERNAME, username)
            if record is None:
                return None
            rows = await connection.fetch(SELECT_USER_ROLES, record["user_id"])
            return User.from_record(record, [row["role_name"] for row in rows])

        return await self.runner.run_read_only(
            _get,
            failure=DatabaseError("Failed to load user", operation="get_user_by_username"),
            operation="get_user_by_username"
        )

    async def email_or_username_exists(self, email: str, username: str) -> bool:
        async def _exists(connection: Connection) -> bool:
            return bool(await connection.fetchval(EMAIL_OR_USERNAME_EXISTS, email, username))

        return await self.runner.run_read_only(
            _exists,
            failure=DatabaseError("Failed to check user existence", operation="email_or_username_exists"),
            operation="email_or_username_exists"
        )
