"""
Pydantic schemas for user data exposed by the API.
"""

from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Optional
from datetime import datetime
from property_portal.models.user import UserRole
import uuid


class UserSummary(BaseModel):
    """Owner or verifier as shown inside property payloads."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: EmailStr


class UserContact(UserSummary):
    """User summary plus phone, for single property views."""

    phone: Optional[str] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: EmailStr
    name: str
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime
