"""
User registration and login service.

Registration validates the request, stores the user locally and then
creates the matching account at the identity provider. The provider account
password is the locally computed hash; login exchanges that same stored hash
for a provider token once the plaintext has been verified locally.
"""
from typing import Optional
from uuid import uuid4

from loguru import logger

from user_management.common.exceptions import (
    RegistrationError,
    AuthenticationError,
    DuplicateUserError,
    ValidationFailure,
)
from user_management.common.utils.password import hash_password, verify_password
from user_management.integrations.identity_provider import IdentityBroker, TokenResponse

from ..models.domain import User
from ..models.request import RegisterUserRequest
from ..repositories.user_repository import UserDirectory
from ..validators import (
    check_required_fields,
    check_password_strength,
    check_email_format,
    already_taken,
    invalid_credentials,
)


class UserService:
    """Coordinates validation, local persistence and provider registration."""

    def __init__(self, directory: UserDirectory, broker: IdentityBroker):
        self.directory = directory
        self.broker = broker

    async def validate_registration(self, request: RegisterUserRequest) -> Optional[ValidationFailure]:
        """
        Run the registration checks in order and return the first failure.

        Order: required fields, existing email/username, password strength,
        email format.
        """
        failure = check_required_fields(request)
        if failure is not None:
            return failure

        if await self.directory.email_or_username_exists(request.email, request.username):
            return already_taken()

        return check_password_strength(request.password) or check_email_format(request.email)

    async def register_user(self, request: RegisterUserRequest) -> User:
        """
        Register a new user.

        Raises:
            RegistrationError: request rejected; nothing was stored
            IdentityProviderError: provider rejected the account after the
                local record was stored
        """
        failure = await self.validate_registration(request)
        if failure is not None:
            logger.info(f"Registration rejected: {failure.kind.value}")
            raise RegistrationError(failure)

        user = User(
            user_id=uuid4(),
            username=request.username,
            email=request.email,
            password_hash=hash_password(request.password),
            roles=list(request.roles),
        )

        try:
            created = await self.directory.create_user(user)
        except DuplicateUserError as e:
            logger.info(f"Registration for {request.username} lost a uniqueness race")
            raise RegistrationError(already_taken()) from e

        await self.broker.register_principal(
            request.model_copy(update={"password": created.password_hash})
        )

        logger.info(f"Registered user {created.username} ({created.user_id})")
        return created

    async def login(self, username: str, password: str) -> TokenResponse:
        """
        Verify local credentials and exchange them for a provider token.

        Unknown users and wrong passwords fail identically.
        """
        user = await self.directory.get_user_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Login rejected: invalid credentials")
            raise AuthenticationError(invalid_credentials())

        return await self.broker.exchange_credentials(user.email, user.password_hash)

    async def logout(self, refresh_token: str) -> None:
        await self.broker.revoke_session(refresh_token)
