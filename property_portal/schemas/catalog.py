"""
Pydantic schemas for the category and amenity catalogs.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
import uuid


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["Residential"])
    description: Optional[str] = Field(None, max_length=1000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None


class AmenityCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["Swimming Pool"])
    icon: Optional[str] = Field(None, max_length=100, examples=["pool"])
    is_active: bool = True

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class AmenityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    icon: Optional[str] = None
    is_active: bool
