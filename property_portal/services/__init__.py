"""
Service layer for business logic implementation.
Contains services for authentication, property listings, media, statistics,
catalogs and error handling.
"""

from .auth import AuthService
from .property import PropertyService
from .media import PropertyMediaService
from .stats import PropertyStatsService
from .catalog import CatalogService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "PropertyMediaService",
    "PropertyStatsService",
    "CatalogService",
    "ErrorHandlerService"
]
