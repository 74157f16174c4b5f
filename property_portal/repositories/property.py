"""
Property repository: the listing query executor and the row-level writes
for a property's dependent data (location, features, amenity links).
"""

from collections import defaultdict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, insert, func, distinct, and_
from sqlalchemy.orm import selectinload, aliased
from sqlalchemy.orm.attributes import set_committed_value
from property_portal.repositories.base import BaseRepository
from property_portal.repositories.filters import PropertyFilterSet, PageRequest, sort_clause
from property_portal.models.property import Property, PropertyLocation, PropertyFeature
from property_portal.models.amenity import Amenity, property_amenities
from property_portal.models.image import PropertyImage
from property_portal.models.document import PropertyDocument
from typing import Optional, List, Dict, Any, Sequence, Tuple
import uuid
import logging


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.

    Listing reads always load category and location. Owner and amenities are
    loaded on request, and images are attached with a per-property cap
    computed in SQL.
    """

    def __init__(self, db: AsyncSession, logger: Optional[logging.Logger] = None):
        super().__init__(Property, db, logger)

    # Reads

    async def find_page(
        self,
        filters: PropertyFilterSet,
        page_request: PageRequest,
        image_limit: Optional[int] = None,
        include_owner: bool = True,
        include_amenities: bool = True
    ) -> Tuple[List[Property], int]:
        """
        Fetch one sorted page of properties matching ``filters``.

        Args:
            filters: Predicates from the filter builder
            page_request: Validated page, limit and sort
            image_limit: Max images attached per property; None means all
            include_owner: Load the owner relation
            include_amenities: Load the amenity relation

        Returns:
            Tuple of (properties on this page, total matching properties)
        """
        try:
            clauses = filters.where_clauses()

            count_query = select(func.count(distinct(Property.id)))
            query = (
                select(Property)
                .options(*self._listing_options(include_owner, include_amenities))
                .execution_options(populate_existing=True)
            )
            if clauses:
                count_query = count_query.where(and_(*clauses))
                query = query.where(and_(*clauses))

            total_count = (await self.db.execute(count_query)).scalar_one()

            query = (
                query.order_by(*sort_clause(page_request))
                .offset(page_request.offset)
                .limit(page_request.limit)
            )
            result = await self.db.execute(query)
            properties = list(result.scalars().unique().all())

            await self.attach_images(properties, image_limit)

            self.logger.debug(
                f"Property page {page_request.page} returned {len(properties)} of {total_count} results"
            )
            return properties, total_count
        except Exception as e:
            self.logger.error(f"Failed to fetch property page: {e}")
            raise

    async def find_latest(
        self,
        filters: PropertyFilterSet,
        limit: int,
        image_limit: Optional[int] = None
    ) -> List[Property]:
        """Newest properties matching ``filters``, without pagination metadata."""
        try:
            query = (
                select(Property)
                .options(*self._listing_options(True, True))
                .execution_options(populate_existing=True)
            )
            clauses = filters.where_clauses()
            if clauses:
                query = query.where(and_(*clauses))
            query = query.order_by(Property.created_at.desc(), Property.id.asc()).limit(limit)

            result = await self.db.execute(query)
            properties = list(result.scalars().unique().all())
            await self.attach_images(properties, image_limit)
            return properties
        except Exception as e:
            self.logger.error(f"Failed to fetch latest properties: {e}")
            raise

    async def get_detail(self, property_id: uuid.UUID) -> Optional[Property]:
        """
        Load a property with every relation, refreshing any copy already in the session.
        """
        try:
            query = (
                select(Property)
                .where(Property.id == property_id)
                .options(
                    selectinload(Property.category),
                    selectinload(Property.owner),
                    selectinload(Property.verifier),
                    selectinload(Property.location),
                    selectinload(Property.images),
                    selectinload(Property.documents),
                    selectinload(Property.features),
                    selectinload(Property.amenities),
                )
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            self.logger.error(f"Failed to load property {property_id}: {e}")
            raise

    async def attach_images(self, properties: Sequence[Property], limit: Optional[int] = None) -> None:
        """
        Load images for ``properties`` in one query and set them as loaded state.

        With a ``limit`` only the first N images per property (by display
        order, then upload time) are fetched, using a row_number window.
        """
        if not properties:
            return

        property_ids = [prop.id for prop in properties]
        ordering = [
            PropertyImage.display_order.asc(),
            PropertyImage.created_at.asc(),
            PropertyImage.id.asc(),
        ]

        if limit is None:
            query = (
                select(PropertyImage)
                .where(PropertyImage.property_id.in_(property_ids))
                .order_by(PropertyImage.property_id, *ordering)
            )
        else:
            position = func.row_number().over(
                partition_by=PropertyImage.property_id,
                order_by=ordering
            ).label("position")
            ranked = (
                select(PropertyImage, position)
                .where(PropertyImage.property_id.in_(property_ids))
                .subquery()
            )
            ranked_image = aliased(PropertyImage, ranked)
            query = (
                select(ranked_image)
                .where(ranked.c.position <= limit)
                .order_by(ranked.c.property_id, ranked.c.position)
            )

        result = await self.db.execute(query)
        grouped: Dict[uuid.UUID, List[PropertyImage]] = defaultdict(list)
        for image in result.scalars().all():
            grouped[image.property_id].append(image)

        for prop in properties:
            set_committed_value(prop, "images", grouped.get(prop.id, []))

    async def increment_views(self, property_id: uuid.UUID) -> None:
        """Bump the view counter in SQL without touching the loaded instance."""
        try:
            await self.db.execute(
                update(Property)
                .where(Property.id == property_id)
                .values(views_count=Property.views_count + 1)
                .execution_options(synchronize_session=False)
            )
        except Exception as e:
            self.logger.error(f"Failed to increment views for property {property_id}: {e}")
            raise

    async def get_views_count(self, property_id: uuid.UUID) -> Optional[int]:
        result = await self.db.execute(
            select(Property.views_count).where(Property.id == property_id)
        )
        return result.scalar_one_or_none()

    # Dependent rows

    async def upsert_location(self, property_id: uuid.UUID, location_data: Dict[str, Any]) -> PropertyLocation:
        """Update the property's location row, creating it when missing."""
        try:
            result = await self.db.execute(
                select(PropertyLocation).where(PropertyLocation.property_id == property_id)
            )
            location = result.scalar_one_or_none()

            if location is None:
                location = PropertyLocation(property_id=property_id, **location_data)
                self.db.add(location)
            else:
                for field, value in location_data.items():
                    setattr(location, field, value)

            location.validate_coordinates()
            await self.db.flush()
            return location
        except Exception as e:
            self.logger.error(f"Failed to upsert location for property {property_id}: {e}")
            raise

    async def replace_features(self, property_id: uuid.UUID, features: List[Dict[str, Any]]) -> None:
        """Delete every feature of the property, then insert ``features``."""
        try:
            await self.db.execute(
                delete(PropertyFeature).where(PropertyFeature.property_id == property_id)
            )
            if features:
                self.db.add_all(
                    [PropertyFeature(property_id=property_id, **feature) for feature in features]
                )
            await self.db.flush()
        except Exception as e:
            self.logger.error(f"Failed to replace features for property {property_id}: {e}")
            raise

    async def replace_amenities(self, property_id: uuid.UUID, amenity_ids: Sequence[uuid.UUID]) -> None:
        """Make the property's amenity links exactly ``amenity_ids``."""
        try:
            await self.db.execute(
                delete(property_amenities).where(property_amenities.c.property_id == property_id)
            )
            unique_ids = list(dict.fromkeys(amenity_ids))
            if unique_ids:
                await self.db.execute(
                    insert(property_amenities),
                    [{"property_id": property_id, "amenity_id": amenity_id} for amenity_id in unique_ids]
                )
        except Exception as e:
            self.logger.error(f"Failed to replace amenities for property {property_id}: {e}")
            raise

    async def get_existing_amenity_ids(self, amenity_ids: Sequence[uuid.UUID]) -> List[uuid.UUID]:
        if not amenity_ids:
            return []
        result = await self.db.execute(select(Amenity.id).where(Amenity.id.in_(list(amenity_ids))))
        return list(result.scalars().all())

    async def collect_file_paths(self, property_id: uuid.UUID) -> List[str]:
        """Paths of every image and document file owned by the property."""
        image_paths = await self.db.execute(
            select(PropertyImage.file_path).where(PropertyImage.property_id == property_id)
        )
        document_paths = await self.db.execute(
            select(PropertyDocument.file_path).where(PropertyDocument.property_id == property_id)
        )
        return list(image_paths.scalars().all()) + list(document_paths.scalars().all())

    async def delete_property_graph(self, property_id: uuid.UUID) -> bool:
        """
        Delete the property and every dependent row.

        Dependents are removed explicitly rather than relying on the
        database's ON DELETE CASCADE, which SQLite only honours when foreign
        keys are switched on.
        """
        try:
            await self.db.execute(delete(PropertyImage).where(PropertyImage.property_id == property_id))
            await self.db.execute(delete(PropertyDocument).where(PropertyDocument.property_id == property_id))
            await self.db.execute(delete(PropertyFeature).where(PropertyFeature.property_id == property_id))
            await self.db.execute(delete(PropertyLocation).where(PropertyLocation.property_id == property_id))
            await self.db.execute(
                delete(property_amenities).where(property_amenities.c.property_id == property_id)
            )
            deleted = await self.delete(property_id)
            if deleted:
                self.logger.info(f"Deleted property {property_id} with all dependent rows")
            return deleted
        except Exception as e:
            self.logger.error(f"Failed to delete property graph {property_id}: {e}")
            raise

    # Aggregates

    async def count_where(self, *conditions) -> int:
        query = select(func.count(Property.id))
        if conditions:
            query = query.where(and_(*conditions))
        return (await self.db.execute(query)).scalar_one()

    async def count_grouped_by(self, column) -> List[Tuple[Any, int]]:
        """(value, count) pairs for ``column``, largest group first."""
        query = (
            select(column, func.count(Property.id).label("total"))
            .group_by(column)
            .order_by(func.count(Property.id).desc())
        )
        result = await self.db.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    async def get_recent(self, limit: int) -> List[Property]:
        query = (
            select(Property)
            .options(selectinload(Property.owner), selectinload(Property.location))
            .order_by(Property.created_at.desc(), Property.id.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    def _listing_options(include_owner: bool, include_amenities: bool) -> list:
        options = [selectinload(Property.category), selectinload(Property.location)]
        if include_owner:
            options.append(selectinload(Property.owner))
        if include_amenities:
            options.append(selectinload(Property.amenities))
        return options
