"""
Amenity catalog and its many-to-many link to properties.
"""

from sqlalchemy import Table, Column, String, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from property_portal.database import Base
from typing import Optional


property_amenities = Table(
    "property_amenities",
    Base.metadata,
    Column(
        "property_id",
        PostgresUUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "amenity_id",
        PostgresUUID(as_uuid=True),
        ForeignKey("amenities.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    ),
)


class Amenity(Base):
    """Catalog entry such as "Gym" or "Power backup"."""

    __tablename__ = "amenities"

    name: Mapped[str] = mapped_column(
        String(120),
        unique=True,
        nullable=False,
        comment="Amenity display name"
    )

    icon: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Amenity(id={self.id}, name={self.name})>"
