"""
Property model for rent, sale and lease listings.
Holds listing data, moderation state and the dependent location and
feature rows that belong to a single property.
"""

from sqlalchemy import (
    String, Text, Integer, Numeric, Boolean, DateTime, Enum as SQLEnum, Index, ForeignKey
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from property_portal.database import Base
from property_portal.models.amenity import property_amenities
from decimal import Decimal
from datetime import datetime
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from property_portal.models.user import User
    from property_portal.models.category import PropertyCategory
    from property_portal.models.amenity import Amenity
    from property_portal.models.image import PropertyImage
    from property_portal.models.document import PropertyDocument


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class PropertyType(str, enum.Enum):
    """Kind of real estate being listed."""
    APARTMENT = "apartment"
    VILLA = "villa"
    HOUSE = "house"
    PLOT = "plot"
    OFFICE = "office"
    SHOP = "shop"


class ListingType(str, enum.Enum):
    """How the property is offered."""
    RENT = "rent"
    SALE = "sale"
    LEASE = "lease"


class FurnishType(str, enum.Enum):
    FURNISHED = "furnished"
    SEMI_FURNISHED = "semi_furnished"
    UNFURNISHED = "unfurnished"


class PropertyStatus(str, enum.Enum):
    """Listing lifecycle status."""
    DRAFT = "draft"
    PUBLISHED = "published"
    BLOCKED = "blocked"
    SOLD = "sold"
    RENTED = "rented"
    VERIFIED = "verified"
    REJECTED = "rejected"


class Property(Base):
    """
    Property listing.

    Owns exactly one optional location row, and any number of images,
    documents and features. Amenities are linked through
    ``property_amenities``. Relationships other than category and location
    are never lazy loaded; queries request them explicitly.
    """

    __tablename__ = "properties"

    unique_id: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        nullable=False,
        index=True,
        comment="Human readable listing code"
    )

    slug: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="URL slug derived from the title"
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property listing title"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Detailed property description"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type", values_callable=_enum_values),
        nullable=False,
        index=True
    )

    listing_type: Mapped[ListingType] = mapped_column(
        SQLEnum(ListingType, name="listing_type", values_callable=_enum_values),
        nullable=False,
        index=True
    )

    # Pricing information
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=False,
        index=True,
        comment="Asking price or headline rent"
    )

    monthly_rent: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=True
    )

    security_deposit: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=True
    )

    # Specifications
    area: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=True,
        comment="Built-up or plot area"
    )

    area_unit: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="sqft"
    )

    bedroom: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    bathroom: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    balcony: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    furnish_type: Mapped[Optional[FurnishType]] = mapped_column(
        SQLEnum(FurnishType, name="furnish_type", values_callable=_enum_values),
        nullable=True
    )

    # Moderation and visibility
    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus, name="property_status", values_callable=_enum_values),
        nullable=False,
        default=PropertyStatus.DRAFT,
        index=True
    )

    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    verified_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        PostgresUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Admin who verified the listing"
    )

    verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )

    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    views_count: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of single-item reads"
    )

    # Ownership and catalog
    owner_id: Mapped[uuid.UUID] = mapped_column(
        PostgresUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        PostgresUUID(as_uuid=True),
        ForeignKey("property_categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Relationships
    category: Mapped[Optional["PropertyCategory"]] = relationship(
        "PropertyCategory",
        lazy="selectin"
    )

    owner: Mapped["User"] = relationship(
        "User",
        foreign_keys=[owner_id],
        lazy="raise"
    )

    verifier: Mapped[Optional["User"]] = relationship(
        "User",
        foreign_keys=[verified_by],
        lazy="raise"
    )

    location: Mapped[Optional["PropertyLocation"]] = relationship(
        "PropertyLocation",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin"
    )

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
        order_by="[PropertyImage.display_order.asc(), PropertyImage.created_at.asc()]"
    )

    documents: Mapped[List["PropertyDocument"]] = relationship(
        "PropertyDocument",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
        order_by="PropertyDocument.created_at.desc()"
    )

    features: Mapped[List["PropertyFeature"]] = relationship(
        "PropertyFeature",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
        order_by="PropertyFeature.name.asc()"
    )

    amenities: Mapped[List["Amenity"]] = relationship(
        "Amenity",
        secondary=property_amenities,
        passive_deletes=True,
        lazy="raise",
        order_by="Amenity.name.asc()"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, unique_id={self.unique_id}, title={self.title[:30]})>"


class PropertyLocation(Base):
    """Location of a property. One row per property, never shared."""

    __tablename__ = "property_locations"

    property_id: Mapped[uuid.UUID] = mapped_column(
        PostgresUUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )

    city: Mapped[Optional[str]] = mapped_column(String(120), nullable=True, index=True)
    locality: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    full_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    pincode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    latitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=8),
        nullable=True
    )

    longitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=11, scale=8),
        nullable=True
    )

    def validate_coordinates(self) -> None:
        """
        Validate latitude and longitude coordinates.

        Raises:
            ValueError: If coordinates are invalid
        """
        if self.latitude is not None and not (-90 <= self.latitude <= 90):
            raise ValueError("Latitude must be between -90 and 90 degrees")

        if self.longitude is not None and not (-180 <= self.longitude <= 180):
            raise ValueError("Longitude must be between -180 and 180 degrees")


class PropertyFeature(Base):
    """Free-form name/value attribute attached to a property."""

    __tablename__ = "property_features"

    property_id: Mapped[uuid.UUID] = mapped_column(
        PostgresUUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    value: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


# Composite indexes for the listing filters
status_featured_index = Index(
    'idx_properties_status_featured',
    Property.status,
    Property.is_featured,
    Property.created_at.desc()
)

owner_status_index = Index(
    'idx_properties_owner_status',
    Property.owner_id,
    Property.status,
    Property.created_at.desc()
)

type_listing_price_index = Index(
    'idx_properties_type_listing_price',
    Property.property_type,
    Property.listing_type,
    Property.price
)
