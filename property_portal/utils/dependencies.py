"""
FastAPI dependency injection utilities for authentication, storage and services.
Provides reusable dependencies for route protection and user extraction.
"""

from functools import lru_cache
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from property_portal.config import get_settings
from property_portal.database import get_db
from property_portal.models.user import User
from property_portal.services.auth import AuthService
from property_portal.services.property import PropertyService
from property_portal.services.media import PropertyMediaService
from property_portal.services.stats import PropertyStatsService
from property_portal.services.catalog import CatalogService
from property_portal.utils.file_storage import FileStorage
from property_portal.utils.exceptions import (
    UnauthorizedError,
    InactiveUserError,
    InsufficientPermissionsError
)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


@lru_cache()
def get_file_storage() -> FileStorage:
    """
    Process-wide file storage. Its cleanup queue outlives single requests so
    failed deletions can be retried by later ones.
    """
    return FileStorage(config=get_settings())


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage)
) -> PropertyService:
    return PropertyService(db, storage)


async def get_media_service(
    db: AsyncSession = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage)
) -> PropertyMediaService:
    return PropertyMediaService(db, storage)


async def get_stats_service(db: AsyncSession = Depends(get_db)) -> PropertyStatsService:
    return PropertyStatsService(db)


async def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If no token is provided
        InvalidTokenError: If the token is invalid
        TokenExpiredError: If the token is expired
        InactiveUserError: If the user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.get_current_user(credentials.credentials)


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    if not current_user.is_active:
        raise InactiveUserError()

    return current_user


async def get_current_admin_user(
    current_user: User = Depends(get_current_active_user)
) -> User:
    """
    Get current user with admin role.

    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if not current_user.is_admin:
        raise InsufficientPermissionsError("access admin resources")

    return current_user
