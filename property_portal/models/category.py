"""
Property category catalog (e.g. Residential, Commercial).
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from property_portal.database import Base
from typing import Optional


class PropertyCategory(Base):
    __tablename__ = "property_categories"

    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(160), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<PropertyCategory(id={self.id}, slug={self.slug})>"
