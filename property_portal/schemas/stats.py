"""
Pydantic schemas for the dashboard statistics endpoint.
"""

from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from property_portal.models.property import PropertyStatus, PropertyType
from property_portal.schemas.property import LocationResponse
import uuid


class PropertyTotals(BaseModel):
    total: int
    published: int
    featured: int
    verified: int


class BreakdownEntry(BaseModel):
    key: str
    count: int


class OwnerName(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class RecentProperty(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    unique_id: str
    title: str
    property_type: PropertyType
    status: PropertyStatus
    price: Decimal
    created_at: datetime
    owner: Optional[OwnerName] = None
    location: Optional[LocationResponse] = None


class PropertyStatsResponse(BaseModel):
    totals: PropertyTotals
    status_breakdown: List[BreakdownEntry]
    type_breakdown: List[BreakdownEntry]
    recent_properties: List[RecentProperty]
