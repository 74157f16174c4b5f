"""
User repository for authentication lookups and account creation.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from property_portal.repositories.base import BaseRepository
from property_portal.models.user import User, UserRole
from typing import Optional, Dict, Any
import logging


class UserRepository(BaseRepository[User]):
    """
    Repository for user accounts.
    Handles email normalisation and password hashing on creation.
    """

    def __init__(self, db: AsyncSession, logger: Optional[logging.Logger] = None):
        super().__init__(User, db, logger)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Must include email, password and name.
                       Optional: phone, role (defaults to OWNER), is_active.

        Returns:
            Created (flushed, not committed) user instance

        Raises:
            ValueError: If validation fails or the email is taken
        """
        data = dict(user_data)
        try:
            email = User.validate_email_format(data["email"])

            existing_user = await self.get_by_email(email)
            if existing_user:
                raise ValueError(f"User with email {email} already exists")

            hashed_password = User.hash_password(data.pop("password"))

            create_data = {
                **data,
                "email": email,
                "hashed_password": hashed_password,
                "role": data.get("role", UserRole.OWNER),
                "is_active": data.get("is_active", True)
            }

            created_user = await self.create(create_data)
            self.logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            self.logger.error(f"User validation failed: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            result = await self.db.execute(select(User).where(User.email == email.lower().strip()))
            return result.scalar_one_or_none()
        except Exception as e:
            self.logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Return the active user matching the credentials, or None.
        """
        user = await self.get_by_email(email)
        if not user:
            return None
        if not user.is_active:
            self.logger.warning(f"Authentication attempt for inactive user: {email}")
            return None
        if not user.verify_password(password):
            return None
        return user
