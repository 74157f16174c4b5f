"""
User model with authentication and role management.
Handles accounts for property owners and portal administrators.
"""

from sqlalchemy import String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from property_portal.database import Base
from passlib.context import CryptContext
from email_validator import validate_email, EmailNotValidError
import enum
import uuid
from typing import Optional

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    OWNER = "owner"
    ADMIN = "admin"


class User(Base):
    """
    User model for authentication and authorization.
    Owners list properties; admins moderate them.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - must be unique and valid"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name"
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(32),
        nullable=True,
        comment="Contact phone number"
    )

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.OWNER,
        index=True,
        comment="User role for access control"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the user account is active"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Args:
            email: Email address to validate

        Returns:
            Normalized email address

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    @classmethod
    def hash_password(cls, password: str) -> str:
        """Hash a password using bcrypt."""
        if not password or len(password) < 8:
            raise ValueError("Password must be at least 8 characters long")

        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        return pwd_context.verify(password, self.hashed_password)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_manage_property(self, property_owner_id: uuid.UUID) -> bool:
        """
        Check if user can manage a specific property.

        Admins can manage every listing; owners only their own.
        """
        if self.is_admin:
            return True

        return self.id == property_owner_id
