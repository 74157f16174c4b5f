"""
Category and amenity catalogs.
"""

from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from property_portal.database import transactional
from property_portal.models.category import PropertyCategory
from property_portal.models.amenity import Amenity
from property_portal.repositories.catalog import CategoryRepository, AmenityRepository
from property_portal.schemas.catalog import CategoryCreate, AmenityCreate
from property_portal.utils.slug import slugify
from property_portal.utils.exceptions import APIException, DuplicateResourceError, StorageError, ValidationError
import logging


class CatalogService:

    def __init__(self, db_session: AsyncSession, logger: Optional[logging.Logger] = None):
        self.db = db_session
        self.logger = logger or logging.getLogger("property_portal.services.catalog")
        self.category_repo = CategoryRepository(db_session, logger=self.logger)
        self.amenity_repo = AmenityRepository(db_session, logger=self.logger)

    async def list_categories(self) -> List[PropertyCategory]:
        try:
            return await self.category_repo.list_all()
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to list categories: {e}")
            raise StorageError("Could not load categories") from e

    async def create_category(self, category_data: CategoryCreate) -> PropertyCategory:
        """
        Create a category. The slug is derived from the name.

        Raises:
            DuplicateResourceError: If a category with the same name or slug exists
        """
        slug = slugify(category_data.name)
        if not slug:
            raise ValidationError("Category name must contain letters or digits")

        try:
            async with transactional(self.db):
                if (
                    await self.category_repo.get_by_field("name", category_data.name)
                    or await self.category_repo.get_by_field("slug", slug)
                ):
                    raise DuplicateResourceError("Category", category_data.name)
                category = await self.category_repo.create({**category_data.model_dump(), "slug": slug})
            self.logger.info(f"Created category {category.name} ({category.id})")
            return category
        except APIException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to create category {category_data.name}: {e}")
            raise StorageError("Could not create category") from e

    async def list_amenities(self, active_only: bool = True) -> List[Amenity]:
        try:
            return await self.amenity_repo.list_all(active_only=active_only)
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to list amenities: {e}")
            raise StorageError("Could not load amenities") from e

    async def create_amenity(self, amenity_data: AmenityCreate) -> Amenity:
        try:
            async with transactional(self.db):
                if await self.amenity_repo.get_by_field("name", amenity_data.name):
                    raise DuplicateResourceError("Amenity", amenity_data.name)
                amenity = await self.amenity_repo.create(amenity_data.model_dump())
            self.logger.info(f"Created amenity {amenity.name} ({amenity.id})")
            return amenity
        except APIException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to create amenity {amenity_data.name}: {e}")
            raise StorageError("Could not create amenity") from e
