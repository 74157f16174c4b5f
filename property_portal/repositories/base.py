"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.

Repositories never commit. They flush so generated ids and defaults are
available, and leave the commit or rollback to the service that owns the
unit of work (see ``property_portal.database.transactional``).
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from property_portal.database import Base
from typing import TypeVar, Generic, Optional, List, Dict, Any, Type
import uuid
import logging

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.
    Uses async SQLAlchemy for all database operations with proper error handling.
    """

    def __init__(
        self,
        model: Type[ModelType],
        db: AsyncSession,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
            logger: Component logger; defaults to one named after the repository
        """
        self.model = model
        self.db = db
        self.logger = logger or logging.getLogger(
            f"property_portal.repositories.{model.__tablename__}"
        )

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Add a new record and flush it.

        Args:
            obj_in: Dictionary of field values for the new record

        Returns:
            Pending model instance with its primary key assigned
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self.db.flush()
            self.logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            self.logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def bulk_create(self, objs_in: List[Dict[str, Any]]) -> List[ModelType]:
        """Add several records in one flush."""
        if not objs_in:
            return []
        try:
            db_objs = [self.model(**obj_in) for obj_in in objs_in]
            self.db.add_all(db_objs)
            await self.db.flush()
            self.logger.debug(f"Bulk created {len(db_objs)} {self.model.__name__} records")
            return db_objs
        except Exception as e:
            self.logger.error(f"Failed to bulk create {self.model.__name__} records: {e}")
            raise

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Get a record by its ID.

        Returns:
            Model instance if found, None otherwise
        """
        try:
            result = await self.db.execute(select(self.model).where(self.model.id == id))
            return result.scalar_one_or_none()
        except Exception as e:
            self.logger.error(f"Failed to get {self.model.__name__} by id {id}: {e}")
            raise

    async def update(self, db_obj: ModelType, obj_in: Dict[str, Any]) -> ModelType:
        """
        Apply field values to a loaded instance and flush.

        Unlike the create path, ``None`` values are written through; callers
        pass only the fields they intend to change.
        """
        try:
            for field, value in obj_in.items():
                setattr(db_obj, field, value)
            await self.db.flush()
            self.logger.debug(f"Updated {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            self.logger.error(f"Failed to update {self.model.__name__} {db_obj.id}: {e}")
            raise

    async def delete(self, id: uuid.UUID) -> bool:
        """
        Delete a record by its ID.

        Returns:
            True if a row was deleted, False if not found
        """
        try:
            result = await self.db.execute(delete(self.model).where(self.model.id == id))
            deleted = result.rowcount > 0
            if deleted:
                self.logger.debug(f"Deleted {self.model.__name__} with id: {id}")
            return deleted
        except Exception as e:
            self.logger.error(f"Failed to delete {self.model.__name__} {id}: {e}")
            raise

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count records matching equality filters."""
        try:
            query = select(func.count(self.model.id))
            if filters:
                for field, value in filters.items():
                    if hasattr(self.model, field):
                        query = query.where(getattr(self.model, field) == value)
            result = await self.db.execute(query)
            return result.scalar_one()
        except Exception as e:
            self.logger.error(f"Failed to count {self.model.__name__} records: {e}")
            raise

    async def exists(self, id: uuid.UUID) -> bool:
        try:
            result = await self.db.execute(select(self.model.id).where(self.model.id == id))
            return result.scalar_one_or_none() is not None
        except Exception as e:
            self.logger.error(f"Failed to check {self.model.__name__} existence {id}: {e}")
            raise

    async def get_by_field(self, field_name: str, value: Any) -> Optional[ModelType]:
        """Get the first record whose ``field_name`` equals ``value``."""
        if not hasattr(self.model, field_name):
            raise ValueError(f"{self.model.__name__} has no field {field_name}")
        try:
            result = await self.db.execute(
                select(self.model).where(getattr(self.model, field_name) == value).limit(1)
            )
            return result.scalar_one_or_none()
        except Exception as e:
            self.logger.error(f"Failed to get {self.model.__name__} by {field_name}: {e}")
            raise
