"""
Database models for the Property Portal API.
Importing this package registers every table on ``Base.metadata``.
"""

from property_portal.models.user import User, UserRole
from property_portal.models.category import PropertyCategory
from property_portal.models.amenity import Amenity, property_amenities
from property_portal.models.property import (
    Property,
    PropertyLocation,
    PropertyFeature,
    PropertyType,
    ListingType,
    FurnishType,
    PropertyStatus,
)
from property_portal.models.image import PropertyImage
from property_portal.models.document import PropertyDocument, DocumentType

__all__ = [
    "User",
    "UserRole",
    "PropertyCategory",
    "Amenity",
    "property_amenities",
    "Property",
    "PropertyLocation",
    "PropertyFeature",
    "PropertyType",
    "ListingType",
    "FurnishType",
    "PropertyStatus",
    "PropertyImage",
    "PropertyDocument",
    "DocumentType",
]
