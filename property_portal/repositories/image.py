"""
Image repository for property photo metadata rows.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from property_portal.models.image import PropertyImage
from property_portal.repositories.base import BaseRepository
from typing import List, Optional
import uuid
import logging


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for property image operations."""

    def __init__(self, db_session: AsyncSession, logger: Optional[logging.Logger] = None):
        super().__init__(PropertyImage, db_session, logger)

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[PropertyImage]:
        """All images of a property in gallery order."""
        try:
            query = (
                select(PropertyImage)
                .where(PropertyImage.property_id == property_id)
                .order_by(
                    PropertyImage.display_order.asc(),
                    PropertyImage.created_at.asc(),
                    PropertyImage.id.asc()
                )
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            self.logger.error(f"Failed to get images for property {property_id}: {e}")
            raise

    async def count_by_property_id(self, property_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(PropertyImage.id)).where(PropertyImage.property_id == property_id)
        )
        return result.scalar_one()
