"""
Pydantic schemas for property requests and responses.
Handles property create/update payloads, moderation requests and the
listing, owner and detail response shapes.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from property_portal.models.property import PropertyType, ListingType, FurnishType, PropertyStatus
from property_portal.schemas.catalog import CategoryResponse, AmenityResponse
from property_portal.schemas.media import ImageResponse, DocumentResponse
from property_portal.schemas.user import UserSummary, UserContact
import uuid

# Statuses only moderators may set.
MODERATION_STATUSES = {PropertyStatus.VERIFIED, PropertyStatus.REJECTED, PropertyStatus.BLOCKED}

# Columns that may be omitted from an update but never cleared.
REQUIRED_ON_UPDATE = ("title", "property_type", "listing_type", "price", "area_unit", "is_featured", "status")


class LocationPayload(BaseModel):
    """Location data sent with a property."""

    city: Optional[str] = Field(None, max_length=120, examples=["New York"])
    locality: Optional[str] = Field(None, max_length=120, examples=["Manhattan"])
    full_address: Optional[str] = Field(None, max_length=500)
    pincode: Optional[str] = Field(None, max_length=20, examples=["10001"])
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90, examples=[40.7127753])
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180, examples=[-74.0059728])

    @field_validator('city', 'locality', 'full_address', 'pincode')
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None


class FeaturePayload(BaseModel):
    """A custom name/value attribute."""

    name: str = Field(..., min_length=1, max_length=120, examples=["Parking"])
    value: Optional[str] = Field(None, max_length=255, examples=["2 covered"])

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Feature name cannot be empty")
        return v.strip()


class PropertyCreate(BaseModel):
    """Payload for creating a property."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Property listing title",
        examples=["2BHK Flat"]
    )
    description: Optional[str] = Field(None, max_length=10000)
    property_type: PropertyType = Field(..., examples=["apartment"])
    listing_type: ListingType = Field(..., examples=["rent"])
    price: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2, examples=[2500])
    monthly_rent: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    security_deposit: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    area: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2, examples=[950])
    area_unit: str = Field(default="sqft", min_length=1, max_length=16)
    bedroom: Optional[int] = Field(None, ge=0, le=100)
    bathroom: Optional[int] = Field(None, ge=0, le=100)
    balcony: Optional[int] = Field(None, ge=0, le=100)
    furnish_type: Optional[FurnishType] = None
    status: Optional[PropertyStatus] = Field(
        None,
        description="Initial status; defaults to the configured status"
    )
    is_featured: bool = False
    category_id: Optional[uuid.UUID] = None

    location: Optional[LocationPayload] = None
    features: Optional[List[FeaturePayload]] = None
    amenity_ids: Optional[List[uuid.UUID]] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        """Validate and clean title."""
        if not v or not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v in MODERATION_STATUSES:
            raise ValueError(f"Status '{v.value}' can only be set by an administrator")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "2BHK Flat",
                "property_type": "apartment",
                "listing_type": "rent",
                "price": 2500,
                "bedroom": 2,
                "location": {"city": "New York", "locality": "Chelsea"},
                "features": [{"name": "Parking", "value": "1"}],
                "amenity_ids": []
            }
        }
    )


class PropertyUpdate(BaseModel):
    """
    Partial update. Omitted fields are left alone; ``features`` and
    ``amenity_ids`` replace the stored sets when present.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    property_type: Optional[PropertyType] = None
    listing_type: Optional[ListingType] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    monthly_rent: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    security_deposit: Optional[Decimal] = Field(None, ge=0, max_digits=14, decimal_places=2)
    area: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    area_unit: Optional[str] = Field(None, min_length=1, max_length=16)
    bedroom: Optional[int] = Field(None, ge=0, le=100)
    bathroom: Optional[int] = Field(None, ge=0, le=100)
    balcony: Optional[int] = Field(None, ge=0, le=100)
    furnish_type: Optional[FurnishType] = None
    status: Optional[PropertyStatus] = None
    is_featured: Optional[bool] = None
    category_id: Optional[uuid.UUID] = None

    location: Optional[LocationPayload] = None
    features: Optional[List[FeaturePayload]] = None
    amenity_ids: Optional[List[uuid.UUID]] = None

    @field_validator(*REQUIRED_ON_UPDATE)
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v in MODERATION_STATUSES:
            raise ValueError(f"Status '{v.value}' can only be set by an administrator")
        return v


class PropertyStatusUpdate(BaseModel):
    status: PropertyStatus = Field(..., examples=["published"])


class PropertyRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000, examples=["incomplete documents"])

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v):
        if not v.strip():
            raise ValueError("Rejection reason cannot be empty")
        return v.strip()


# Responses

class LocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    city: Optional[str] = None
    locality: Optional[str] = None
    full_address: Optional[str] = None
    pincode: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None


class FeatureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    value: Optional[str] = None


class PropertyResponseBase(BaseModel):
    """Columns plus the relations every property view carries."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    unique_id: str
    slug: str
    title: str
    description: Optional[str] = None
    property_type: PropertyType
    listing_type: ListingType
    price: Decimal
    monthly_rent: Optional[Decimal] = None
    security_deposit: Optional[Decimal] = None
    area: Optional[Decimal] = None
    area_unit: str
    bedroom: Optional[int] = None
    bathroom: Optional[int] = None
    balcony: Optional[int] = None
    furnish_type: Optional[FurnishType] = None
    status: PropertyStatus
    is_featured: bool
    is_verified: bool
    views_count: int
    owner_id: uuid.UUID
    category_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    category: Optional[CategoryResponse] = None
    location: Optional[LocationResponse] = None
    images: List[ImageResponse] = Field(default_factory=list)


class OwnerPropertyItem(PropertyResponseBase):
    """Row of an owner's listing; the owner is implied."""


class PropertyListItem(PropertyResponseBase):
    """Row of the public listing, search and featured views."""

    owner: Optional[UserSummary] = None
    amenities: List[AmenityResponse] = Field(default_factory=list)


class PropertyDetailResponse(PropertyResponseBase):
    """Single property with every relation."""

    owner: Optional[UserContact] = None
    verified_by: Optional[uuid.UUID] = None
    verified_at: Optional[datetime] = None
    verifier: Optional[UserSummary] = None
    rejection_reason: Optional[str] = None
    amenities: List[AmenityResponse] = Field(default_factory=list)
    features: List[FeatureResponse] = Field(default_factory=list)
    documents: List[DocumentResponse] = Field(default_factory=list)


class PaginationResponse(BaseModel):
    current_page: int
    per_page: int
    total: int
    total_pages: int


class PropertyListResponse(BaseModel):
    properties: List[PropertyListItem]
    pagination: PaginationResponse


class OwnerPropertyListResponse(BaseModel):
    properties: List[OwnerPropertyItem]
    pagination: PaginationResponse


class FeaturedPropertiesResponse(BaseModel):
    properties: List[PropertyListItem]
