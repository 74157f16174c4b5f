"""
Property service: listing queries, the property write path and moderation.

Every write runs inside one transaction, so a property is stored together
with its location, features, amenity links and file rows or not at all.
"""

from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Mapping, Sequence, Union
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from property_portal.config import Settings, get_settings
from property_portal.database import transactional
from property_portal.models.property import Property, PropertyStatus
from property_portal.models.category import PropertyCategory
from property_portal.models.user import User
from property_portal.repositories.property import PropertyRepository
from property_portal.repositories.base import BaseRepository
from property_portal.repositories.filters import (
    ListingScope,
    build_property_filters,
    parse_page_request,
    parse_int,
)
from property_portal.schemas.property import PropertyCreate, PropertyUpdate
from property_portal.services.media import PropertyMediaService
from property_portal.utils.file_storage import FileStorage, StoredFile
from property_portal.utils.pagination import PagedResult, Pagination
from property_portal.utils.slug import generate_slug, generate_unique_id
from property_portal.utils.exceptions import (
    APIException,
    PropertyNotFoundError,
    InsufficientPermissionsError,
    StorageError,
    ValidationError,
)
import uuid
import logging

NESTED_FIELDS = {"location", "features", "amenity_ids"}


class PropertyService:
    """
    Property listings with their dependent rows.

    Listing reads go through the filter builder and the repository's page
    query. Writes wrap the whole row graph in ``transactional`` and hand any
    files left behind by a failed or deleting write to the cleanup queue.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        storage: FileStorage,
        config: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.db = db_session
        self.storage = storage
        self.config = config or get_settings()
        self.logger = logger or logging.getLogger("property_portal.services.property")
        self.property_repo = PropertyRepository(db_session, logger=self.logger)
        self.category_repo = BaseRepository(PropertyCategory, db_session, logger=self.logger)
        self.media = PropertyMediaService(db_session, storage, logger=self.logger)

    # Listing

    async def list_properties(self, params: Mapping[str, Any]) -> PagedResult[Property]:
        """General listing: every status, every documented filter."""
        return await self._paged_listing(params, ListingScope.GENERAL, "list properties")

    async def search_properties(self, params: Mapping[str, Any]) -> PagedResult[Property]:
        """Public search. Only published properties are ever returned."""
        return await self._paged_listing(params, ListingScope.SEARCH, "search properties")

    async def get_featured_properties(self, params: Mapping[str, Any]) -> List[Property]:
        """
        Newest featured, published properties.

        Honours ``limit``, ``property_type`` and ``city``; other parameters
        are ignored.
        """
        limit = parse_int(params.get("limit"))
        if limit is None or limit < 1:
            limit = self.config.featured_default_limit
        limit = min(limit, self.config.max_page_size)

        filters = build_property_filters(
            {"property_type": params.get("property_type"), "city": params.get("city")},
            ListingScope.FEATURED
        )
        try:
            return await self.property_repo.find_latest(
                filters, limit, image_limit=self.config.compact_image_limit
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to get featured properties: {e}")
            raise StorageError("Could not load featured properties") from e

    async def get_owner_properties(
        self,
        owner_id: uuid.UUID,
        params: Mapping[str, Any]
    ) -> PagedResult[Property]:
        """
        Paginated properties of one owner, filterable by status and type.
        """
        filters = build_property_filters(
            {
                "owner_id": owner_id,
                "status": params.get("status"),
                "property_type": params.get("property_type"),
            },
            ListingScope.OWNER
        )
        page_request = parse_page_request(
            params, self.config.default_page_size, self.config.max_page_size
        )
        try:
            properties, total = await self.property_repo.find_page(
                filters,
                page_request,
                image_limit=self.config.compact_image_limit,
                include_owner=False,
                include_amenities=False
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to get properties of owner {owner_id}: {e}")
            raise StorageError("Could not load owner properties") from e

        return PagedResult(
            items=properties,
            pagination=Pagination.build(page_request.page, page_request.limit, total)
        )

    async def get_property(self, property_id: uuid.UUID) -> Property:
        """
        Full property by id. Each successful read bumps ``views_count``;
        the returned entity still carries the value read before the bump.

        Raises:
            PropertyNotFoundError: If the property does not exist
        """
        try:
            property_obj = await self.property_repo.get_detail(property_id)
            if not property_obj:
                raise PropertyNotFoundError(str(property_id))

            async with transactional(self.db):
                await self.property_repo.increment_views(property_id)

            self.logger.debug(f"Retrieved property: {property_id}")
            return property_obj
        except APIException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to get property {property_id}: {e}")
            raise StorageError("Could not load property") from e

    # Writes

    async def create_property(
        self,
        property_data: PropertyCreate,
        owner: User,
        images: Optional[Sequence[UploadFile]] = None,
        documents: Optional[Sequence[UploadFile]] = None
    ) -> Property:
        """
        Create a property with its location, features, amenities and files.

        Args:
            property_data: Validated create payload
            owner: User who will own the listing
            images: Image uploads, ordered 1..n
            documents: Document uploads, named after their original file

        Returns:
            The created property with every relation loaded

        Raises:
            ValidationError: If the category or an amenity id is unknown
            FileUploadError: If an upload is rejected
            StorageError: If the database write fails
        """
        owner_id, owner_email = owner.id, owner.email
        stored: List[StoredFile] = []
        try:
            async with transactional(self.db):
                create_data = property_data.model_dump(exclude=NESTED_FIELDS, exclude_none=True)
                await self._check_category(create_data.get("category_id"))

                create_data.update(
                    owner_id=owner_id,
                    unique_id=generate_unique_id(),
                    slug=generate_slug(property_data.title),
                    status=create_data.get("status") or PropertyStatus(self.config.default_property_status),
                )
                property_obj = await self.property_repo.create(create_data)
                property_id = property_obj.id

                await self._write_dependents(property_id, property_data)

                if images:
                    await self.media.store_images(property_id, images, owner_id, stored)
                if documents:
                    await self.media.store_documents(property_id, documents, owner_id, stored)

            self.logger.info(
                f"Property created by user {owner_email}: {property_obj.title} (ID: {property_id})"
            )
        except APIException:
            await self.media.discard_files(stored)
            raise
        except ValueError as e:
            await self.media.discard_files(stored)
            raise ValidationError(str(e))
        except SQLAlchemyError as e:
            await self.media.discard_files(stored)
            self.logger.error(f"Failed to create property for user {owner_id}: {e}")
            raise StorageError("Could not create property") from e

        return await self._load_detail(property_id)

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        actor: User,
        images: Optional[Sequence[UploadFile]] = None
    ) -> Property:
        """
        Update a property.

        Only fields present in the payload change. A supplied location is
        upserted. Supplied features and amenity ids replace the stored sets
        entirely. New images are appended to the existing ones.

        Raises:
            PropertyNotFoundError: If the property does not exist
            InsufficientPermissionsError: If ``actor`` is neither owner nor admin
        """
        stored: List[StoredFile] = []
        try:
            async with transactional(self.db):
                property_obj = await self._get_property(property_id)
                if not actor.can_manage_property(property_obj.owner_id):
                    raise InsufficientPermissionsError("update this property")

                update_data = property_data.model_dump(exclude_unset=True, exclude=NESTED_FIELDS)
                if "category_id" in update_data:
                    await self._check_category(update_data["category_id"])
                if update_data:
                    await self.property_repo.update(property_obj, update_data)

                await self._write_dependents(property_id, property_data, partial=True)

                if images:
                    await self.media.store_images(property_id, images, actor.id, stored)

            self.logger.info(f"Property {property_id} updated by user {actor.email}")
        except APIException:
            await self.media.discard_files(stored)
            raise
        except ValueError as e:
            await self.media.discard_files(stored)
            raise ValidationError(str(e))
        except SQLAlchemyError as e:
            await self.media.discard_files(stored)
            self.logger.error(f"Failed to update property {property_id}: {e}")
            raise StorageError("Could not update property") from e

        return await self._load_detail(property_id)

    async def update_property_status(self, property_id: uuid.UUID, status: PropertyStatus) -> Property:
        return await self._moderate(property_id, {"status": status}, f"status set to {status.value}")

    async def verify_property(self, property_id: uuid.UUID, admin: User) -> Property:
        """Mark a property verified by ``admin``."""
        changes = {
            "is_verified": True,
            "verified_by": admin.id,
            "verified_at": datetime.now(timezone.utc),
            "status": PropertyStatus.VERIFIED,
        }
        return await self._moderate(property_id, changes, f"verified by {admin.email}")

    async def reject_property(self, property_id: uuid.UUID, reason: str) -> Property:
        """Reject a property with a reason. ``is_verified`` is left as it was."""
        changes = {"status": PropertyStatus.REJECTED, "rejection_reason": reason}
        return await self._moderate(property_id, changes, "rejected")

    async def delete_property(self, property_id: uuid.UUID, actor: Optional[User] = None) -> bool:
        """
        Delete a property and every dependent row.

        Backing files are queued for removal once the rows are gone; a file
        that is already missing is not an error.

        Raises:
            PropertyNotFoundError: If the property does not exist
            InsufficientPermissionsError: If ``actor`` is neither owner nor admin
        """
        try:
            async with transactional(self.db):
                property_obj = await self._get_property(property_id)
                if actor is not None and not actor.can_manage_property(property_obj.owner_id):
                    raise InsufficientPermissionsError("delete this property")

                file_paths = await self.property_repo.collect_file_paths(property_id)
                await self.property_repo.delete_property_graph(property_id)

            self.storage.cleanup_queue.enqueue(file_paths)
            self.logger.info(f"Deleted property {property_id}; {len(file_paths)} files queued for cleanup")
            return True
        except APIException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to delete property {property_id}: {e}")
            raise StorageError("Could not delete property") from e

    # Helpers

    async def _paged_listing(
        self,
        params: Mapping[str, Any],
        scope: ListingScope,
        action: str
    ) -> PagedResult[Property]:
        filters = build_property_filters(params, scope)
        page_request = parse_page_request(
            params, self.config.default_page_size, self.config.max_page_size
        )
        try:
            properties, total = await self.property_repo.find_page(
                filters, page_request, image_limit=self.config.listing_image_limit
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to {action}: {e}")
            raise StorageError(f"Could not {action}") from e

        return PagedResult(
            items=properties,
            pagination=Pagination.build(page_request.page, page_request.limit, total)
        )

    async def _write_dependents(
        self,
        property_id: uuid.UUID,
        property_data: Union[PropertyCreate, PropertyUpdate],
        partial: bool = False
    ) -> None:
        """Location upsert plus feature and amenity replacement, for whatever was supplied."""
        if property_data.location is not None:
            location_data = property_data.location.model_dump(exclude_unset=partial)
            await self.property_repo.upsert_location(property_id, location_data)

        if property_data.features is not None:
            await self.property_repo.replace_features(
                property_id, [feature.model_dump() for feature in property_data.features]
            )

        if property_data.amenity_ids is not None:
            await self._check_amenities(property_data.amenity_ids)
            await self.property_repo.replace_amenities(property_id, property_data.amenity_ids)

    async def _moderate(self, property_id: uuid.UUID, changes: Dict[str, Any], description: str) -> Property:
        try:
            async with transactional(self.db):
                property_obj = await self._get_property(property_id)
                await self.property_repo.update(property_obj, changes)
            self.logger.info(f"Property {property_id} {description}")
        except APIException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to moderate property {property_id}: {e}")
            raise StorageError("Could not update property") from e

        return await self._load_detail(property_id)

    async def _get_property(self, property_id: uuid.UUID) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    async def _load_detail(self, property_id: uuid.UUID) -> Property:
        try:
            property_obj = await self.property_repo.get_detail(property_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to reload property {property_id}: {e}")
            raise StorageError("Could not load property") from e
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    async def _check_category(self, category_id: Optional[uuid.UUID]) -> None:
        if category_id is not None and not await self.category_repo.exists(category_id):
            raise ValidationError(
                "Unknown category",
                field_errors=[{"field": "category_id", "message": f"Category {category_id} does not exist"}]
            )

    async def _check_amenities(self, amenity_ids: Sequence[uuid.UUID]) -> None:
        existing = set(await self.property_repo.get_existing_amenity_ids(amenity_ids))
        missing = [str(amenity_id) for amenity_id in amenity_ids if amenity_id not in existing]
        if missing:
            raise ValidationError(
                "Unknown amenities",
                field_errors=[{"field": "amenity_ids", "message": f"Amenities not found: {', '.join(missing)}"}]
            )
