"""
Pydantic schemas for authentication requests and responses.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from property_portal.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["owner@example.com"]
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="User's password (minimum 8 characters)",
        examples=["securepassword123"]
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class LoginResponse(BaseModel):
    """Access token plus the authenticated user."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds", examples=[1800])
    user: UserResponse
