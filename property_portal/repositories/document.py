"""
Document repository for property document metadata rows.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from property_portal.models.document import PropertyDocument
from property_portal.repositories.base import BaseRepository
from typing import List, Optional
import uuid
import logging


class DocumentRepository(BaseRepository[PropertyDocument]):

    def __init__(self, db_session: AsyncSession, logger: Optional[logging.Logger] = None):
        super().__init__(PropertyDocument, db_session, logger)

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[PropertyDocument]:
        """Documents of a property, newest first."""
        try:
            query = (
                select(PropertyDocument)
                .where(PropertyDocument.property_id == property_id)
                .order_by(PropertyDocument.created_at.desc(), PropertyDocument.id.asc())
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            self.logger.error(f"Failed to get documents for property {property_id}: {e}")
            raise
