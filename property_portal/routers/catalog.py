"""
Category and amenity catalog endpoints.
"""

from fastapi import APIRouter, Depends, status
from typing import List

from property_portal.models.user import User
from property_portal.services.catalog import CatalogService
from property_portal.schemas.catalog import CategoryCreate, CategoryResponse, AmenityCreate, AmenityResponse
from property_portal.utils.dependencies import get_catalog_service, get_current_admin_user


router = APIRouter(tags=["Catalog"])


@router.get("/categories", response_model=List[CategoryResponse], summary="List categories")
async def list_categories(
    catalog_service: CatalogService = Depends(get_catalog_service)
) -> List[CategoryResponse]:
    categories = await catalog_service.list_categories()
    return [CategoryResponse.model_validate(category) for category in categories]


@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create category",
    description="Admin only. The slug is derived from the name."
)
async def create_category(
    category_data: CategoryCreate,
    _: User = Depends(get_current_admin_user),
    catalog_service: CatalogService = Depends(get_catalog_service)
) -> CategoryResponse:
    category = await catalog_service.create_category(category_data)
    return CategoryResponse.model_validate(category)


@router.get("/amenities", response_model=List[AmenityResponse], summary="List active amenities")
async def list_amenities(
    catalog_service: CatalogService = Depends(get_catalog_service)
) -> List[AmenityResponse]:
    amenities = await catalog_service.list_amenities()
    return [AmenityResponse.model_validate(amenity) for amenity in amenities]


@router.post(
    "/amenities",
    response_model=AmenityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create amenity",
    description="Admin only."
)
async def create_amenity(
    amenity_data: AmenityCreate,
    _: User = Depends(get_current_admin_user),
    catalog_service: CatalogService = Depends(get_catalog_service)
) -> AmenityResponse:
    amenity = await catalog_service.create_amenity(amenity_data)
    return AmenityResponse.model_validate(amenity)
