"""
Repositories for the category and amenity catalogs.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from property_portal.models.category import PropertyCategory
from property_portal.models.amenity import Amenity
from property_portal.repositories.base import BaseRepository
from typing import List, Optional
import logging


class CategoryRepository(BaseRepository[PropertyCategory]):

    def __init__(self, db: AsyncSession, logger: Optional[logging.Logger] = None):
        super().__init__(PropertyCategory, db, logger)

    async def list_all(self) -> List[PropertyCategory]:
        result = await self.db.execute(select(PropertyCategory).order_by(PropertyCategory.name.asc()))
        return list(result.scalars().all())


class AmenityRepository(BaseRepository[Amenity]):

    def __init__(self, db: AsyncSession, logger: Optional[logging.Logger] = None):
        super().__init__(Amenity, db, logger)

    async def list_all(self, active_only: bool = True) -> List[Amenity]:
        query = select(Amenity).order_by(Amenity.name.asc())
        if active_only:
            query = query.where(Amenity.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())
