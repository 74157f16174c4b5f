"""
Authentication service for login and bearer token resolution.
"""

from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from property_portal.config import Settings, get_settings
from property_portal.repositories.user import UserRepository
from property_portal.models.user import User
from property_portal.utils.auth import create_access_token, verify_token, JWTError, ExpiredSignatureError
from property_portal.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    NotFoundError,
    ValidationError,
    StorageError,
)
import uuid
import logging


class AuthService:
    """
    Authenticates users and turns access tokens back into users.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        config: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.db = db_session
        self.config = config or get_settings()
        self.logger = logger or logging.getLogger("property_portal.services.auth")
        self.user_repo = UserRepository(db_session, logger=self.logger)

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate a user by email and password.

        Returns:
            Authenticated User object

        Raises:
            ValidationError: If email or password is blank
            InvalidCredentialsError: If the credentials do not match an active user
        """
        if not email or not email.strip():
            raise ValidationError("Email is required")
        if not password:
            raise ValidationError("Password is required")

        try:
            user = await self.user_repo.authenticate_user(email, password)
        except SQLAlchemyError as e:
            self.logger.error(f"Authentication lookup failed for {email}: {e}")
            raise StorageError("Could not authenticate user") from e

        if not user:
            self.logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        self.logger.info(f"User authenticated successfully: {user.email}")
        return user

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Authenticate a user and issue an access token.

        Returns:
            Tuple of (user, access_token)
        """
        user = await self.authenticate_user(email, password)
        access_token = create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role,
            config=self.config
        )
        return user, access_token

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user behind an access token.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid or its user is gone
            InactiveUserError: If the account is deactivated
        """
        try:
            token_payload = verify_token(token, config=self.config)
            user_id = uuid.UUID(token_payload.user_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        try:
            user = await self.get_user_by_id(user_id)
        except NotFoundError:
            raise InvalidTokenError("Token user no longer exists")

        if not user.is_active:
            raise InactiveUserError()

        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        try:
            user = await self.user_repo.get_by_id(user_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to load user {user_id}: {e}")
            raise StorageError("Could not load user") from e

        if not user:
            raise NotFoundError("User", str(user_id))
        return user
