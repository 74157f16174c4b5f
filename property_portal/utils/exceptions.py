"""
Error types raised by services and dependencies.

Every error is an ``HTTPException`` carrying a stable ``error_code`` so the
error handler can render a uniform envelope. Subclasses only set class-level
defaults and build their message; routers never translate errors themselves.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base class: an error with an HTTP status and a machine-readable code."""

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "API_ERROR"
    default_detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None, headers: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=detail or self.default_detail,
            headers=headers
        )


class ValidationError(APIException):
    """Input rejected by a business rule. ``field_errors`` lists ``{"field", "message"}`` pairs."""

    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"
    default_detail = "Validation failed"

    def __init__(self, detail: Optional[str] = None, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(detail)
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    status_code_default = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        self.resource = resource
        self.resource_id = resource_id
        suffix = f" with ID: {resource_id}" if resource_id else ""
        super().__init__(f"{resource} not found{suffix}")


class PropertyNotFoundError(NotFoundError):
    def __init__(self, property_id: str):
        super().__init__("Property", property_id)


class ImageNotFoundError(NotFoundError):
    def __init__(self, image_id: str):
        super().__init__("Image", image_id)


class DocumentNotFoundError(NotFoundError):
    def __init__(self, document_id: str):
        super().__init__("Document", document_id)


class UnauthorizedError(APIException):
    """Missing or unusable credentials. Always answers with a Bearer challenge."""

    status_code_default = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class InvalidCredentialsError(UnauthorizedError):
    default_detail = "Invalid email or password"


class TokenExpiredError(UnauthorizedError):
    default_detail = "Token has expired"


class InvalidTokenError(UnauthorizedError):
    default_detail = "Invalid token"


class ForbiddenError(APIException):
    status_code_default = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_detail = "Access forbidden"


class InactiveUserError(ForbiddenError):
    default_detail = "User account is inactive"


class InsufficientPermissionsError(ForbiddenError):
    """The caller is authenticated but may not perform ``action``."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Insufficient permissions to {action}")


class BadRequestError(APIException):
    status_code_default = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"
    default_detail = "Bad request"


class DuplicateResourceError(APIException):
    """A unique catalog value (name or slug) is already taken."""

    status_code_default = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"

    def __init__(self, resource: str, value: str):
        super().__init__(f"{resource} '{value}' already exists")


class StorageError(APIException):
    """Persistence failure. The surrounding transaction has already been rolled back."""

    error_code = "STORAGE_ERROR"
    default_detail = "Database operation failed"


# Upload errors are client errors: the request carried a file we will not store.
class FileUploadError(BadRequestError):
    def __init__(self, detail: str):
        super().__init__(f"File upload error: {detail}")


class UnsupportedFileTypeError(BadRequestError):
    def __init__(self, file_type: str, supported_types: List[str]):
        self.file_type = file_type
        super().__init__(
            f"Unsupported file type '{file_type}'. Supported types: {', '.join(supported_types)}"
        )


class FileSizeExceededError(BadRequestError):
    def __init__(self, size: int, max_size: int):
        super().__init__(f"File size {size} bytes exceeds maximum allowed size {max_size} bytes")
