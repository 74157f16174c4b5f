"""
PropertyImage model for uploaded listing photos.
Stores file metadata and presentation order; the bytes live in FileStorage.
"""

from sqlalchemy import String, Integer, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from property_portal.database import Base
import uuid
from typing import Optional


class PropertyImage(Base):
    """
    PropertyImage model for managing uploaded property images.
    Stores file metadata and maintains relationships with properties.
    """

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        PostgresUUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    file_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Generated name of the stored file"
    )

    original_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Filename as uploaded by the client"
    )

    file_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        unique=True,
        comment="Path to the stored image file"
    )

    file_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="File size in bytes"
    )

    mime_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False
    )

    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Display order for image gallery"
    )

    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        PostgresUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, file_name={self.file_name})>"

    @property
    def file_size_mb(self) -> float:
        """Get file size in megabytes."""
        return round(self.file_size / (1024 * 1024), 2)


# Gallery ordering lookup
property_order_index = Index(
    'idx_property_images_property_order',
    PropertyImage.property_id,
    PropertyImage.display_order
)
