"""
JWT helpers for issuing and validating bearer access tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, ExpiredSignatureError, jwt
from property_portal.config import Settings, get_settings
from property_portal.models.user import UserRole
import uuid


class TokenPayload:
    """Decoded access token claims."""

    def __init__(self, user_id: str, email: str, role: str, exp: datetime):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=data["sub"],
            email=data["email"],
            role=data["role"],
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None,
    config: Optional[Settings] = None
) -> str:
    """
    Create a signed JWT access token carrying the user's id, email and role.

    Args:
        user_id: User's UUID
        email: User's email address
        role: User's role (owner/admin)
        expires_delta: Optional custom lifetime
        config: Settings to sign with; defaults to the cached settings

    Returns:
        Encoded JWT token string
    """
    config = config or get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=config.access_token_expire_minutes))

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": role.value,
        "exp": expire,
        "iat": now,
        "type": "access"
    }

    return jwt.encode(to_encode, config.jwt_secret_key, algorithm=config.jwt_algorithm)


def verify_token(token: str, config: Optional[Settings] = None) -> TokenPayload:
    """
    Decode and validate an access token.

    Raises:
        ExpiredSignatureError: If the token has expired
        JWTError: If the token is malformed, badly signed or missing claims
    """
    config = config or get_settings()
    payload = jwt.decode(token, config.jwt_secret_key, algorithms=[config.jwt_algorithm])

    if payload.get("type") != "access":
        raise JWTError("Invalid token type")

    if not payload.get("sub") or not payload.get("email") or not payload.get("role"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)


def extract_token_from_header(authorization: Optional[str]) -> str:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        ValueError: If the header is missing or not a bearer header
    """
    if not authorization:
        raise ValueError("Authorization header is missing")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise ValueError("Invalid authorization header format")

    return parts[1]


__all__ = [
    "TokenPayload",
    "create_access_token",
    "verify_token",
    "extract_token_from_header",
    "JWTError",
    "ExpiredSignatureError",
]
