"""
Repository layer for data access operations.
"""

from property_portal.repositories.base import BaseRepository
from property_portal.repositories.user import UserRepository
from property_portal.repositories.property import PropertyRepository
from property_portal.repositories.image import ImageRepository
from property_portal.repositories.document import DocumentRepository
from property_portal.repositories.catalog import CategoryRepository, AmenityRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "ImageRepository",
    "DocumentRepository",
    "CategoryRepository",
    "AmenityRepository",
]
