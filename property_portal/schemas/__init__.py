"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import LoginRequest, LoginResponse

# User schemas
from .user import UserSummary, UserContact, UserResponse

# Catalog schemas
from .catalog import CategoryCreate, CategoryResponse, AmenityCreate, AmenityResponse

# Media schemas
from .media import ImageResponse, DocumentMetadata, DocumentResponse, MessageResponse

# Property schemas
from .property import (
    LocationPayload,
    FeaturePayload,
    PropertyCreate,
    PropertyUpdate,
    PropertyStatusUpdate,
    PropertyRejectRequest,
    LocationResponse,
    FeatureResponse,
    OwnerPropertyItem,
    PropertyListItem,
    PropertyDetailResponse,
    PaginationResponse,
    PropertyListResponse,
    OwnerPropertyListResponse,
    FeaturedPropertiesResponse,
)

# Stats schemas
from .stats import PropertyStatsResponse

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "UserSummary",
    "UserContact",
    "UserResponse",
    "CategoryCreate",
    "CategoryResponse",
    "AmenityCreate",
    "AmenityResponse",
    "ImageResponse",
    "DocumentMetadata",
    "DocumentResponse",
    "MessageResponse",
    "LocationPayload",
    "FeaturePayload",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyStatusUpdate",
    "PropertyRejectRequest",
    "LocationResponse",
    "FeatureResponse",
    "OwnerPropertyItem",
    "PropertyListItem",
    "PropertyDetailResponse",
    "PaginationResponse",
    "PropertyListResponse",
    "OwnerPropertyListResponse",
    "FeaturedPropertiesResponse",
    "PropertyStatsResponse",
]
