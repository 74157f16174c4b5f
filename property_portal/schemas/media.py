"""
Pydantic schemas for property images and documents.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from property_portal.models.document import DocumentType
import uuid


class ImageResponse(BaseModel):
    """Stored image metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    property_id: uuid.UUID
    file_name: str
    original_name: Optional[str] = None
    file_path: str
    file_size: int
    mime_type: str
    display_order: int
    uploaded_by: Optional[uuid.UUID] = None
    created_at: datetime


class DocumentMetadata(BaseModel):
    """Optional metadata sent alongside a document upload."""

    document_name: Optional[str] = Field(
        None,
        max_length=255,
        description="Display name; defaults to the uploaded file name",
        examples=["Title deed"]
    )
    doc_type: DocumentType = Field(
        default=DocumentType.OTHER,
        description="Kind of document",
        examples=["ownership"]
    )

    @field_validator('document_name')
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    property_id: uuid.UUID
    document_name: str
    doc_type: DocumentType
    file_name: str
    original_name: Optional[str] = None
    file_path: str
    file_size: int
    mime_type: str
    uploaded_by: Optional[uuid.UUID] = None
    created_at: datetime


class MessageResponse(BaseModel):
    message: str
