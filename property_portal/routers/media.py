"""
Property image and document endpoints.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status
from pydantic import ValidationError as PydanticValidationError
from typing import List, Optional
from uuid import UUID

from property_portal.models.user import User
from property_portal.services.media import PropertyMediaService
from property_portal.services.error_handler import ErrorHandlerService
from property_portal.schemas.media import ImageResponse, DocumentResponse, DocumentMetadata, MessageResponse
from property_portal.utils.dependencies import get_current_active_user, get_media_service
from property_portal.utils.exceptions import ValidationError


router = APIRouter(prefix="/properties", tags=["Property Media"])


@router.get(
    "/{property_id}/images",
    response_model=List[ImageResponse],
    summary="List property images",
    description="Images ordered by display order, then upload time"
)
async def list_images(
    property_id: UUID,
    media_service: PropertyMediaService = Depends(get_media_service)
) -> List[ImageResponse]:
    images = await media_service.list_images(property_id)
    return [ImageResponse.model_validate(image) for image in images]


@router.post(
    "/{property_id}/images",
    response_model=List[ImageResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Upload property images",
    description="Upload one or more JPEG, PNG or WebP images. Owner or admin only."
)
async def upload_images(
    property_id: UUID,
    images: List[UploadFile] = File(..., description="Image files"),
    current_user: User = Depends(get_current_active_user),
    media_service: PropertyMediaService = Depends(get_media_service)
) -> List[ImageResponse]:
    uploaded = await media_service.upload_images(property_id, images, current_user)
    return [ImageResponse.model_validate(image) for image in uploaded]


@router.delete(
    "/images/{image_id}",
    response_model=MessageResponse,
    summary="Delete property image"
)
async def delete_image(
    image_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_active_user),
    media_service: PropertyMediaService = Depends(get_media_service)
) -> MessageResponse:
    await media_service.delete_image(image_id, actor=current_user)
    background_tasks.add_task(media_service.storage.cleanup_queue.process)
    return MessageResponse(message="Image deleted successfully")


@router.get(
    "/{property_id}/documents",
    response_model=List[DocumentResponse],
    summary="List property documents",
    description="Documents, newest first"
)
async def list_documents(
    property_id: UUID,
    media_service: PropertyMediaService = Depends(get_media_service)
) -> List[DocumentResponse]:
    documents = await media_service.list_documents(property_id)
    return [DocumentResponse.model_validate(document) for document in documents]


@router.post(
    "/{property_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload property document",
    description="Upload one document with an optional name and type. Owner or admin only."
)
async def upload_document(
    property_id: UUID,
    file: UploadFile = File(..., description="Document file"),
    document_name: Optional[str] = Form(None),
    doc_type: Optional[str] = Form(None),
    current_user: User = Depends(get_current_active_user),
    media_service: PropertyMediaService = Depends(get_media_service)
) -> DocumentResponse:
    metadata_fields = {"document_name": document_name}
    if doc_type:
        metadata_fields["doc_type"] = doc_type
    try:
        metadata = DocumentMetadata(**metadata_fields)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid document metadata",
            field_errors=ErrorHandlerService.validation_details(e)
        )

    document = await media_service.upload_document(property_id, file, metadata, current_user)
    return DocumentResponse.model_validate(document)


@router.delete(
    "/documents/{document_id}",
    response_model=MessageResponse,
    summary="Delete property document"
)
async def delete_document(
    document_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_active_user),
    media_service: PropertyMediaService = Depends(get_media_service)
) -> MessageResponse:
    await media_service.delete_document(document_id, actor=current_user)
    background_tasks.add_task(media_service.storage.cleanup_queue.process)
    return MessageResponse(message="Document deleted successfully")
