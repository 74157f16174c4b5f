"""
Property API endpoints: listing, search, featured, CRUD, moderation,
owner listings and dashboard statistics.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile, status
from pydantic import BaseModel, ValidationError as PydanticValidationError
from typing import Any, Dict, List, Optional, Type, TypeVar
from uuid import UUID

from property_portal.models.user import User
from property_portal.services.property import PropertyService
from property_portal.services.stats import PropertyStatsService
from property_portal.services.error_handler import ErrorHandlerService
from property_portal.schemas.media import MessageResponse
from property_portal.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyStatusUpdate,
    PropertyRejectRequest,
    PropertyListItem,
    OwnerPropertyItem,
    PropertyDetailResponse,
    PaginationResponse,
    PropertyListResponse,
    OwnerPropertyListResponse,
    FeaturedPropertiesResponse,
)
from property_portal.schemas.stats import PropertyStatsResponse
from property_portal.utils.dependencies import (
    get_current_active_user,
    get_current_admin_user,
    get_property_service,
    get_stats_service,
)
from property_portal.utils.exceptions import InsufficientPermissionsError, ValidationError
from property_portal.utils.pagination import PagedResult


router = APIRouter(prefix="/properties", tags=["Properties"])

SchemaT = TypeVar("SchemaT", bound=BaseModel)

# Query parameters that may repeat.
LIST_PARAMS = ("amenities",)

LISTING_DESCRIPTION = (
    "Query parameters: page, limit, sort_by, sort_order, search (or query), property_type, "
    "listing_type, status, bedroom, bathroom, furnish_type, owner_id, is_featured, is_verified, "
    "min_price, max_price, city, locality. Malformed filter values are ignored."
)


def query_params(request: Request) -> Dict[str, Any]:
    """Raw query parameters as a plain mapping; repeatable keys become lists."""
    params: Dict[str, Any] = dict(request.query_params)
    for key in LIST_PARAMS:
        values = request.query_params.getlist(key)
        if len(values) > 1:
            params[key] = values
    return params


def parse_payload(schema: Type[SchemaT], raw: str) -> SchemaT:
    """Validate the JSON ``payload`` form field of a multipart request."""
    try:
        return schema.model_validate_json(raw)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid property payload",
            field_errors=ErrorHandlerService.validation_details(e)
        )


def listing_response(result: PagedResult) -> PropertyListResponse:
    return PropertyListResponse(
        properties=[PropertyListItem.model_validate(item) for item in result.items],
        pagination=PaginationResponse(**result.pagination.to_dict())
    )


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="List properties",
    description=LISTING_DESCRIPTION
)
async def list_properties(
    request: Request,
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    result = await property_service.list_properties(query_params(request))
    return listing_response(result)


@router.get(
    "/search",
    response_model=PropertyListResponse,
    summary="Search published properties",
    description=LISTING_DESCRIPTION + " Only published properties are returned; "
                                      "amenities filters by any of the given amenity ids."
)
async def search_properties(
    request: Request,
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    result = await property_service.search_properties(query_params(request))
    return listing_response(result)


@router.get(
    "/featured",
    response_model=FeaturedPropertiesResponse,
    summary="Featured properties",
    description="Newest featured, published properties. Query parameters: limit, property_type, city."
)
async def get_featured_properties(
    request: Request,
    property_service: PropertyService = Depends(get_property_service)
) -> FeaturedPropertiesResponse:
    properties = await property_service.get_featured_properties(query_params(request))
    return FeaturedPropertiesResponse(
        properties=[PropertyListItem.model_validate(item) for item in properties]
    )


@router.get(
    "/stats",
    response_model=PropertyStatsResponse,
    summary="Dashboard statistics",
    description="Totals, status and type breakdowns and the most recent properties. Admin only."
)
async def get_property_stats(
    _: User = Depends(get_current_admin_user),
    stats_service: PropertyStatsService = Depends(get_stats_service)
) -> PropertyStatsResponse:
    return PropertyStatsResponse.model_validate(await stats_service.get_stats(), from_attributes=True)


@router.get(
    "/owner/{owner_id}",
    response_model=OwnerPropertyListResponse,
    summary="Properties of an owner",
    description="Paginated properties of one owner. Query parameters: page, limit, sort_by, "
                "sort_order, status, property_type. Available to the owner and to admins."
)
async def get_owner_properties(
    owner_id: UUID,
    request: Request,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> OwnerPropertyListResponse:
    if current_user.id != owner_id and not current_user.is_admin:
        raise InsufficientPermissionsError("view another owner's properties")

    result = await property_service.get_owner_properties(owner_id, query_params(request))
    return OwnerPropertyListResponse(
        properties=[OwnerPropertyItem.model_validate(item) for item in result.items],
        pagination=PaginationResponse(**result.pagination.to_dict())
    )


@router.post(
    "",
    response_model=PropertyDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create property",
    description="Multipart request: a JSON `payload` field plus optional `images` and `documents` files."
)
async def create_property(
    payload: str = Form(..., description="PropertyCreate as JSON"),
    images: Optional[List[UploadFile]] = File(None),
    documents: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyDetailResponse:
    property_data = parse_payload(PropertyCreate, payload)
    property_obj = await property_service.create_property(
        property_data,
        current_user,
        images=images or [],
        documents=documents or []
    )
    return PropertyDetailResponse.model_validate(property_obj)


@router.get(
    "/{property_id}",
    response_model=PropertyDetailResponse,
    summary="Get property",
    description="Full property with owner, verifier, images, documents, features and amenities. "
                "Each read increments the view counter."
)
async def get_property(
    property_id: UUID,
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyDetailResponse:
    property_obj = await property_service.get_property(property_id)
    return PropertyDetailResponse.model_validate(property_obj)


@router.put(
    "/{property_id}",
    response_model=PropertyDetailResponse,
    summary="Update property",
    description="Multipart request: a JSON `payload` field plus optional `images` to append. "
                "Supplied features and amenity_ids replace the stored sets."
)
async def update_property(
    property_id: UUID,
    payload: str = Form(..., description="PropertyUpdate as JSON"),
    images: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyDetailResponse:
    property_data = parse_payload(PropertyUpdate, payload)
    property_obj = await property_service.update_property(
        property_id, property_data, current_user, images=images or []
    )
    return PropertyDetailResponse.model_validate(property_obj)


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    summary="Delete property",
    description="Delete a property with all dependent rows. Files are removed in the background."
)
async def delete_property(
    property_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    await property_service.delete_property(property_id, actor=current_user)
    background_tasks.add_task(property_service.storage.cleanup_queue.process)
    return MessageResponse(message="Property deleted successfully")


@router.patch(
    "/{property_id}/status",
    response_model=PropertyDetailResponse,
    summary="Update property status",
    description="Set any status. Admin only."
)
async def update_property_status(
    property_id: UUID,
    status_data: PropertyStatusUpdate,
    _: User = Depends(get_current_admin_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyDetailResponse:
    property_obj = await property_service.update_property_status(property_id, status_data.status)
    return PropertyDetailResponse.model_validate(property_obj)


@router.post(
    "/{property_id}/verify",
    response_model=PropertyDetailResponse,
    summary="Verify property",
    description="Mark the property verified by the calling admin."
)
async def verify_property(
    property_id: UUID,
    admin: User = Depends(get_current_admin_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyDetailResponse:
    property_obj = await property_service.verify_property(property_id, admin)
    return PropertyDetailResponse.model_validate(property_obj)


@router.post(
    "/{property_id}/reject",
    response_model=PropertyDetailResponse,
    summary="Reject property",
    description="Reject the property with a reason. Admin only."
)
async def reject_property(
    property_id: UUID,
    reject_data: PropertyRejectRequest,
    _: User = Depends(get_current_admin_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyDetailResponse:
    property_obj = await property_service.reject_property(property_id, reject_data.reason)
    return PropertyDetailResponse.model_validate(property_obj)
