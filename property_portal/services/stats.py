"""
Dashboard statistics over property listings.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from property_portal.config import Settings, get_settings
from property_portal.models.property import Property, PropertyStatus
from property_portal.repositories.property import PropertyRepository
from property_portal.utils.exceptions import StorageError
import enum
import logging


class PropertyStatsService:
    """Read-only counters and breakdowns for the admin dashboard."""

    def __init__(
        self,
        db_session: AsyncSession,
        config: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.db = db_session
        self.config = config or get_settings()
        self.logger = logger or logging.getLogger("property_portal.services.stats")
        self.property_repo = PropertyRepository(db_session, logger=self.logger)

    async def get_stats(self) -> Dict[str, Any]:
        """
        Collect dashboard statistics.

        Returns:
            Dictionary with ``totals``, ``status_breakdown``,
            ``type_breakdown`` and ``recent_properties``
        """
        try:
            totals = {
                "total": await self.property_repo.count_where(),
                "published": await self.property_repo.count_where(
                    Property.status == PropertyStatus.PUBLISHED
                ),
                "featured": await self.property_repo.count_where(Property.is_featured.is_(True)),
                "verified": await self.property_repo.count_where(Property.is_verified.is_(True)),
            }
            status_breakdown = self._breakdown(
                await self.property_repo.count_grouped_by(Property.status)
            )
            type_breakdown = self._breakdown(
                await self.property_repo.count_grouped_by(Property.property_type)
            )
            recent = await self.property_repo.get_recent(self.config.recent_properties_limit)
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to collect property stats: {e}")
            raise StorageError("Could not collect property statistics") from e

        return {
            "totals": totals,
            "status_breakdown": status_breakdown,
            "type_breakdown": type_breakdown,
            "recent_properties": recent,
        }

    @staticmethod
    def _breakdown(rows) -> List[Dict[str, Any]]:
        return [
            {"key": key.value if isinstance(key, enum.Enum) else key, "count": count}
            for key, count in rows
        ]
