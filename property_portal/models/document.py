"""
PropertyDocument model for ownership papers, agreements and plans.
"""

from sqlalchemy import String, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from property_portal.database import Base
import enum
import uuid
from typing import Optional


class DocumentType(str, enum.Enum):
    OWNERSHIP = "ownership"
    AGREEMENT = "agreement"
    TAX = "tax"
    FLOOR_PLAN = "floor_plan"
    OTHER = "other"


class PropertyDocument(Base):
    """Document attached to a property. Same file metadata as PropertyImage."""

    __tablename__ = "property_documents"

    property_id: Mapped[uuid.UUID] = mapped_column(
        PostgresUUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    document_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name, defaults to the uploaded filename"
    )

    doc_type: Mapped[DocumentType] = mapped_column(
        SQLEnum(DocumentType, name="document_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DocumentType.OTHER
    )

    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_path: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)

    uploaded_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        PostgresUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    def __repr__(self) -> str:
        return f"<PropertyDocument(id={self.id}, doc_type={self.doc_type}, name={self.document_name})>"
