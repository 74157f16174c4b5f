"""
Media service for property images and documents.

Files are written through FileStorage before their rows are flushed. When a
write fails the stored files are discarded through the cleanup queue, and
deleting a row queues its file only after the commit succeeds.
"""

from typing import List, Optional, Sequence
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from property_portal.database import transactional
from property_portal.models.property import Property
from property_portal.models.image import PropertyImage
from property_portal.models.document import PropertyDocument
from property_portal.models.user import User
from property_portal.repositories.property import PropertyRepository
from property_portal.repositories.image import ImageRepository
from property_portal.repositories.document import DocumentRepository
from property_portal.schemas.media import DocumentMetadata
from property_portal.utils.file_storage import FileStorage, StoredFile
from property_portal.utils.exceptions import (
    APIException,
    PropertyNotFoundError,
    ImageNotFoundError,
    DocumentNotFoundError,
    InsufficientPermissionsError,
    StorageError,
    ValidationError,
)
import uuid
import logging


class PropertyMediaService:
    """Uploads, lists and deletes the images and documents of a property."""

    def __init__(
        self,
        db_session: AsyncSession,
        storage: FileStorage,
        logger: Optional[logging.Logger] = None
    ):
        self.db = db_session
        self.storage = storage
        self.logger = logger or logging.getLogger("property_portal.services.media")
        self.property_repo = PropertyRepository(db_session, logger=self.logger)
        self.image_repo = ImageRepository(db_session, logger=self.logger)
        self.document_repo = DocumentRepository(db_session, logger=self.logger)

    # Images

    async def list_images(self, property_id: uuid.UUID) -> List[PropertyImage]:
        """Images of a property by display order, then upload time."""
        try:
            await self._get_property(property_id)
            return await self.image_repo.get_by_property_id(property_id)
        except APIException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to list images for property {property_id}: {e}")
            raise StorageError("Could not load property images") from e

    async def upload_images(
        self,
        property_id: uuid.UUID,
        files: Sequence[UploadFile],
        uploaded_by: User
    ) -> List[PropertyImage]:
        """
        Store a batch of images and record them.

        Display order is the 1-based position within the batch.

        Raises:
            ValidationError: If no files were sent
            PropertyNotFoundError: If the property does not exist
            InsufficientPermissionsError: If the user cannot manage the property
            FileUploadError: If a file is rejected or cannot be written
        """
        if not files:
            raise ValidationError("At least one image file is required")

        stored: List[StoredFile] = []
        try:
            async with transactional(self.db):
                property_obj = await self._get_property(property_id)
                self._check_can_manage(property_obj, uploaded_by, "upload images for this property")
                images = await self.store_images(property_id, files, uploaded_by.id, stored)

            self.logger.info(f"Uploaded {len(images)} images to property {property_id}")
            return images
        except APIException:
            await self.discard_files(stored)
            raise
        except SQLAlchemyError as e:
            await self.discard_files(stored)
            self.logger.error(f"Failed to record images for property {property_id}: {e}")
            raise StorageError("Could not save property images") from e

    async def delete_image(self, image_id: uuid.UUID, actor: Optional[User] = None) -> bool:
        """
        Delete an image row and queue its file for removal.

        Raises:
            ImageNotFoundError: If the image does not exist
        """
        try:
            async with transactional(self.db):
                image = await self.image_repo.get_by_id(image_id)
                if not image:
                    raise ImageNotFoundError(str(image_id))
                if actor is not None:
                    property_obj = await self._get_property(image.property_id)
                    self._check_can_manage(property_obj, actor, "delete images of this property")
                file_path = image.file_path
                await self.image_repo.delete(image_id)

            self.storage.cleanup_queue.enqueue([file_path])
            self.logger.info(f"Deleted image {image_id}")
            return True
        except APIException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to delete image {image_id}: {e}")
            raise StorageError("Could not delete image") from e

    # Documents

    async def list_documents(self, property_id: uuid.UUID) -> List[PropertyDocument]:
        """Documents of a property, newest first."""
        try:
            await self._get_property(property_id)
            return await self.document_repo.get_by_property_id(property_id)
        except APIException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to list documents for property {property_id}: {e}")
            raise StorageError("Could not load property documents") from e

    async def upload_document(
        self,
        property_id: uuid.UUID,
        file: UploadFile,
        metadata: Optional[DocumentMetadata],
        uploaded_by: User
    ) -> PropertyDocument:
        """
        Store one document. The name defaults to the uploaded file name and
        the type to ``other``.
        """
        stored: List[StoredFile] = []
        try:
            async with transactional(self.db):
                property_obj = await self._get_property(property_id)
                self._check_can_manage(property_obj, uploaded_by, "upload documents for this property")
                documents = await self.store_documents(
                    property_id, [file], uploaded_by.id, stored, metadata=metadata
                )

            self.logger.info(f"Uploaded document {documents[0].id} to property {property_id}")
            return documents[0]
        except APIException:
            await self.discard_files(stored)
            raise
        except SQLAlchemyError as e:
            await self.discard_files(stored)
            self.logger.error(f"Failed to record document for property {property_id}: {e}")
            raise StorageError("Could not save property document") from e

    async def delete_document(self, document_id: uuid.UUID, actor: Optional[User] = None) -> bool:
        try:
            async with transactional(self.db):
                document = await self.document_repo.get_by_id(document_id)
                if not document:
                    raise DocumentNotFoundError(str(document_id))
                if actor is not None:
                    property_obj = await self._get_property(document.property_id)
                    self._check_can_manage(property_obj, actor, "delete documents of this property")
                file_path = document.file_path
                await self.document_repo.delete(document_id)

            self.storage.cleanup_queue.enqueue([file_path])
            self.logger.info(f"Deleted document {document_id}")
            return True
        except APIException:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Failed to delete document {document_id}: {e}")
            raise StorageError("Could not delete document") from e

    # Building blocks shared with the property write path. Callers own the transaction.

    async def store_images(
        self,
        property_id: uuid.UUID,
        files: Sequence[UploadFile],
        uploaded_by: uuid.UUID,
        stored: List[StoredFile]
    ) -> List[PropertyImage]:
        """
        Save each file and flush one image row per file.

        Every saved file is appended to ``stored`` as soon as it is written,
        so the caller can discard them if the surrounding transaction fails.
        """
        rows = []
        for position, upload in enumerate(files, start=1):
            saved = await self.storage.save_image(property_id, upload)
            stored.append(saved)
            rows.append({
                "property_id": property_id,
                "file_name": saved.file_name,
                "original_name": saved.original_name,
                "file_path": saved.file_path,
                "file_size": saved.file_size,
                "mime_type": saved.mime_type,
                "display_order": position,
                "uploaded_by": uploaded_by,
            })
        return await self.image_repo.bulk_create(rows)

    async def store_documents(
        self,
        property_id: uuid.UUID,
        files: Sequence[UploadFile],
        uploaded_by: uuid.UUID,
        stored: List[StoredFile],
        metadata: Optional[DocumentMetadata] = None
    ) -> List[PropertyDocument]:
        rows = []
        for upload in files:
            saved = await self.storage.save_document(property_id, upload)
            stored.append(saved)
            row = {
                "property_id": property_id,
                "document_name": saved.original_name,
                "file_name": saved.file_name,
                "original_name": saved.original_name,
                "file_path": saved.file_path,
                "file_size": saved.file_size,
                "mime_type": saved.mime_type,
                "uploaded_by": uploaded_by,
            }
            if metadata is not None:
                if metadata.document_name:
                    row["document_name"] = metadata.document_name
                row["doc_type"] = metadata.doc_type
            rows.append(row)
        return await self.document_repo.bulk_create(rows)

    async def discard_files(self, stored: Sequence[StoredFile]) -> None:
        """Remove files whose rows were never committed."""
        if not stored:
            return
        self.logger.warning(f"Discarding {len(stored)} stored files after a failed write")
        self.storage.cleanup_queue.enqueue([item.file_path for item in stored])
        await self.storage.cleanup_queue.process()

    async def _get_property(self, property_id: uuid.UUID) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    @staticmethod
    def _check_can_manage(property_obj: Property, user: User, action: str) -> None:
        if not user.can_manage_property(property_obj.owner_id):
            raise InsufficientPermissionsError(action)
