"""
Menu endpoints: owner catalog management, the public menu behind a QR
code, and menu upload (AI/heuristic extraction preview).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import get_services, get_tenant_id
from qrmenu.database import get_db
from qrmenu.schemas import (
    ApiResponse,
    AvailabilityUpdate,
    ErrorResponse,
    ExtractedItemResponse,
    ListResponse,
    MenuBulkUpsert,
    MenuExtractionResponse,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    PublicMenuResponse,
    RestaurantProfile,
)
from qrmenu.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menu", tags=["Menu"])


# =============================================================================
# OWNER CATALOG
# =============================================================================

@router.get(
    "/owner",
    response_model=ListResponse[MenuItemResponse],
    summary="List Menu Items",
)
async def owner_menu(
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ListResponse[MenuItemResponse]:
    items = await services.catalog.list_for_tenant(db, tenant_id)
    return ListResponse(
        count=len(items),
        data=[MenuItemResponse.model_validate(item) for item in items],
    )


@router.post(
    "/items",
    response_model=ApiResponse[MenuItemResponse],
    status_code=201,
    summary="Add Menu Item",
)
async def create_menu_item(
    body: MenuItemCreate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[MenuItemResponse]:
    item = await services.catalog.create(db, tenant_id, body.model_dump())
    return ApiResponse(
        message="Menu item added successfully",
        data=MenuItemResponse.model_validate(item),
    )


@router.put(
    "",
    response_model=ListResponse[MenuItemResponse],
    summary="Save Menu (Bulk)",
)
async def save_menu(
    body: MenuBulkUpsert,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ListResponse[MenuItemResponse]:
    """Confirms an extracted (and reviewed) menu in one request."""
    rows = [row.model_dump(exclude_unset=True) for row in body.items]
    items = await services.catalog.bulk_upsert(db, tenant_id, rows)
    return ListResponse(
        count=len(items),
        data=[MenuItemResponse.model_validate(item) for item in items],
    )


@router.put(
    "/items/{item_id}",
    response_model=ApiResponse[MenuItemResponse],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update Menu Item",
)
async def update_menu_item(
    item_id: str,
    body: MenuItemUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[MenuItemResponse]:
    item = await services.catalog.update(db, item_id, tenant_id, body.model_dump(exclude_unset=True))
    return ApiResponse(
        message="Menu item updated successfully",
        data=MenuItemResponse.model_validate(item),
    )


@router.patch(
    "/items/{item_id}/availability",
    response_model=ApiResponse[MenuItemResponse],
    summary="Toggle Availability",
)
async def set_availability(
    item_id: str,
    body: AvailabilityUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[MenuItemResponse]:
    item = await services.catalog.set_availability(db, item_id, tenant_id, body.is_available)
    state = "available" if item.is_available else "unavailable"
    return ApiResponse(
        message=f"Item marked as {state}",
        data=MenuItemResponse.model_validate(item),
    )


@router.delete(
    "/items/{item_id}",
    response_model=ApiResponse,
    summary="Delete Menu Item",
)
async def delete_menu_item(
    item_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse:
    await services.catalog.delete(db, item_id, tenant_id)
    return ApiResponse(message="Menu item deleted successfully")


@router.delete(
    "/items",
    response_model=ApiResponse[int],
    summary="Delete All Menu Items",
)
async def delete_all_menu_items(
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[int]:
    deleted = await services.catalog.delete_all(db, tenant_id)
    return ApiResponse(message=f"Deleted {deleted} menu items", data=deleted)


# =============================================================================
# MENU UPLOAD
# =============================================================================

@router.post(
    "/upload",
    response_model=ApiResponse[MenuExtractionResponse],
    responses={400: {"model": ErrorResponse}},
    summary="Extract Menu From Upload",
)
async def upload_menu(
    file: UploadFile = File(...),
    tenant_id: str = Depends(get_tenant_id),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[MenuExtractionResponse]:
    """
    Extract menu items from an image or PDF.

    Nothing is saved: the owner reviews the preview and confirms it
    through ``PUT /api/menu``.
    """
    content = await file.read()
    logger.info(f"Menu upload from tenant {tenant_id}: {file.filename} ({file.content_type}, {len(content)} bytes)")

    result = await services.extraction.extract(content, file.content_type or "")
    if result.items:
        message = f"Extracted {len(result.items)} items. Please review before saving."
    else:
        message = "Could not extract menu items automatically. Please add items manually."

    return ApiResponse(
        message=message,
        data=MenuExtractionResponse(
            items=[
                ExtractedItemResponse(
                    name=item.name,
                    description=item.description,
                    price=item.price,
                    currency=item.currency,
                    category=item.category,
                )
                for item in result.items
            ],
            method=result.method,
            needs_manual_review=result.needs_manual_review,
            extracted_text=result.extracted_text,
        ),
    )


# =============================================================================
# PUBLIC MENU
# =============================================================================

@router.get(
    "/public/{slug}",
    response_model=ApiResponse[PublicMenuResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Public Menu",
)
async def public_menu(
    slug: str,
    token: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[PublicMenuResponse]:
    menu = await services.catalog.public_menu(db, slug, token=token)
    restaurant = menu.restaurant
    return ApiResponse(
        data=PublicMenuResponse(
            restaurant=RestaurantProfile(
                name=restaurant.restaurant_name,
                description=restaurant.restaurant_description,
                address=restaurant.restaurant_address,
                restaurant_logo=restaurant.restaurant_logo,
            ),
            table_number=menu.table_number,
            items=[MenuItemResponse.model_validate(item) for item in menu.items],
            categories={
                category: [MenuItemResponse.model_validate(item) for item in items]
                for category, items in menu.categories.items()
            },
        )
    )
