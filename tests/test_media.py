"""
Tests for property image and document handling in PropertyMediaService.
"""

import uuid
from pathlib import Path

import pytest

from property_portal.models.document import DocumentType
from property_portal.models.property import Property
from property_portal.models.user import User
from property_portal.schemas.media import DocumentMetadata
from property_portal.services.media import PropertyMediaService
from property_portal.utils.exceptions import (
    DocumentNotFoundError,
    FileSizeExceededError,
    FileUploadError,
    ImageNotFoundError,
    InsufficientPermissionsError,
    PropertyNotFoundError,
    UnsupportedFileTypeError,
    ValidationError,
)
from tests.conftest import FileFactory


class TestImageUploads:

    @pytest.mark.asyncio
    async def test_upload_images_in_batch_order(
        self, media_service: PropertyMediaService, test_property: Property, test_owner: User
    ):
        images = await media_service.upload_images(
            test_property.id,
            [FileFactory.image_upload("a.jpg"), FileFactory.image_upload("b.jpg")],
            test_owner
        )

        assert [(img.original_name, img.display_order) for img in images] == [("a.jpg", 1), ("b.jpg", 2)]
        assert all(img.uploaded_by == test_owner.id for img in images)
        assert all(img.file_name.endswith(".jpg") and img.file_name != "a.jpg" for img in images)
        assert all(Path(img.file_path).exists() for img in images)

        listed = await media_service.list_images(test_property.id)
        assert [img.id for img in listed] == [img.id for img in images]

    @pytest.mark.asyncio
    async def test_upload_png(self, media_service: PropertyMediaService, test_property: Property, test_owner: User):
        upload = FileFactory.upload(FileFactory.image_bytes(image_format="PNG"), "plan.png", "image/png")

        images = await media_service.upload_images(test_property.id, [upload], test_owner)

        assert images[0].mime_type == "image/png"

    @pytest.mark.asyncio
    async def test_upload_requires_files(
        self, media_service: PropertyMediaService, test_property: Property, test_owner: User
    ):
        with pytest.raises(ValidationError):
            await media_service.upload_images(test_property.id, [], test_owner)

    @pytest.mark.asyncio
    async def test_upload_by_other_owner(
        self, media_service: PropertyMediaService, test_property: Property, other_owner: User, file_storage
    ):
        with pytest.raises(InsufficientPermissionsError):
            await media_service.upload_images(test_property.id, [FileFactory.image_upload()], other_owner)

        assert [p for p in Path(file_storage.base_dir).rglob("*") if p.is_file()] == []

    @pytest.mark.asyncio
    async def test_upload_to_missing_property(self, media_service: PropertyMediaService, test_owner: User):
        with pytest.raises(PropertyNotFoundError):
            await media_service.upload_images(uuid.uuid4(), [FileFactory.image_upload()], test_owner)

    @pytest.mark.asyncio
    async def test_bad_file_in_batch_discards_earlier_files(
        self, media_service: PropertyMediaService, test_property: Property, test_owner: User, file_storage
    ):
        property_id = test_property.id
        batch = [
            FileFactory.image_upload("good.jpg"),
            FileFactory.upload(b"not really an image", "bad.jpg", "image/jpeg"),
        ]

        with pytest.raises(FileUploadError):
            await media_service.upload_images(property_id, batch, test_owner)

        assert [p for p in Path(file_storage.base_dir).rglob("*") if p.is_file()] == []
        assert await media_service.image_repo.count_by_property_id(property_id) == 0

    @pytest.mark.asyncio
    async def test_image_validation(
        self, media_service: PropertyMediaService, test_property: Property, test_owner: User
    ):
        property_id = test_property.id
        rejected = [
            (FileFactory.upload(FileFactory.image_bytes(), "photo.gif", "image/gif"), UnsupportedFileTypeError),
            (FileFactory.upload(FileFactory.image_bytes(), "photo.png", "image/jpeg"), FileUploadError),
            (FileFactory.image_upload(size=(50, 50)), FileUploadError),
            (FileFactory.upload(b"", "empty.jpg", "image/jpeg"), FileUploadError),
            (
                FileFactory.upload(FileFactory.image_bytes(image_format="PNG"), "fake.jpg", "image/jpeg"),
                FileUploadError,
            ),
        ]

        for upload, error in rejected:
            with pytest.raises(error):
                await media_service.storage.save_image(property_id, upload)

    @pytest.mark.asyncio
    async def test_oversized_image(self, media_service: PropertyMediaService, test_property: Property, monkeypatch):
        monkeypatch.setattr(media_service.storage.config, "max_image_size", 10)

        with pytest.raises(FileSizeExceededError):
            await media_service.storage.save_image(test_property.id, FileFactory.image_upload())


class TestImageDeletes:

    @pytest.mark.asyncio
    async def test_delete_image_queues_file(
        self, media_service: PropertyMediaService, test_property: Property, test_owner: User, file_storage
    ):
        images = await media_service.upload_images(test_property.id, [FileFactory.image_upload()], test_owner)
        image_id, file_path = images[0].id, images[0].file_path

        assert await media_service.delete_image(image_id, actor=test_owner) is True

        assert file_storage.cleanup_queue.pending == [file_path]
        assert await media_service.list_images(test_property.id) == []

        await file_storage.cleanup_queue.process()
        assert not Path(file_path).exists()

    @pytest.mark.asyncio
    async def test_delete_missing_image(self, media_service: PropertyMediaService):
        with pytest.raises(ImageNotFoundError):
            await media_service.delete_image(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_delete_image_by_other_owner(
        self,
        media_service: PropertyMediaService,
        test_property: Property,
        test_owner: User,
        other_owner: User
    ):
        images = await media_service.upload_images(test_property.id, [FileFactory.image_upload()], test_owner)
        image_id = images[0].id

        with pytest.raises(InsufficientPermissionsError):
            await media_service.delete_image(image_id, actor=other_owner)

        assert await media_service.image_repo.exists(image_id) is True


class TestDocuments:

    @pytest.mark.asyncio
    async def test_upload_document_defaults(
        self, media_service: PropertyMediaService, test_property: Property, test_owner: User
    ):
        document = await media_service.upload_document(
            test_property.id, FileFactory.document_upload("sale-deed.pdf"), None, test_owner
        )

        assert document.document_name == "sale-deed.pdf"
        assert document.doc_type == DocumentType.OTHER
        assert document.mime_type == "application/pdf"
        assert Path(document.file_path).exists()

    @pytest.mark.asyncio
    async def test_upload_document_with_metadata(
        self, media_service: PropertyMediaService, test_property: Property, test_owner: User
    ):
        metadata = DocumentMetadata(document_name="  Title deed ", doc_type="ownership")

        document = await media_service.upload_document(
            test_property.id, FileFactory.document_upload(), metadata, test_owner
        )

        assert document.document_name == "Title deed"
        assert document.doc_type == DocumentType.OWNERSHIP
        assert [d.id for d in await media_service.list_documents(test_property.id)] == [document.id]

    @pytest.mark.asyncio
    async def test_document_type_checks(
        self, media_service: PropertyMediaService, test_property: Property, test_owner: User
    ):
        with pytest.raises(UnsupportedFileTypeError):
            await media_service.upload_document(
                test_property.id, FileFactory.upload(b"zip", "bundle.zip", "application/zip"), None, test_owner
            )

    @pytest.mark.asyncio
    async def test_delete_document(
        self, media_service: PropertyMediaService, test_property: Property, test_owner: User, file_storage
    ):
        document = await media_service.upload_document(
            test_property.id, FileFactory.document_upload(), None, test_owner
        )
        document_id, file_path = document.id, document.file_path

        assert await media_service.delete_document(document_id, actor=test_owner) is True
        assert file_storage.cleanup_queue.pending == [file_path]

        with pytest.raises(DocumentNotFoundError):
            await media_service.delete_document(document_id)

    @pytest.mark.asyncio
    async def test_list_documents_for_missing_property(self, media_service: PropertyMediaService):
        with pytest.raises(PropertyNotFoundError):
            await media_service.list_documents(uuid.uuid4())
