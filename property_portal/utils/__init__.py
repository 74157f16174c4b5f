"""
Utility modules for the Property Portal API.
"""

from .auth import (
    create_access_token,
    verify_token,
    extract_token_from_header,
    TokenPayload
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    BadRequestError,
    DuplicateResourceError,
    StorageError,
    InvalidCredentialsError,
    TokenExpiredError,
    InvalidTokenError,
    InactiveUserError,
    InsufficientPermissionsError
)

# Dependencies and file storage are imported directly where needed to avoid circular imports

__all__ = [
    "create_access_token",
    "verify_token",
    "extract_token_from_header",
    "TokenPayload",

    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "BadRequestError",
    "DuplicateResourceError",
    "StorageError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "InvalidTokenError",
    "InactiveUserError",
    "InsufficientPermissionsError",
]
