"""
Inventory endpoints (tenant-scoped; staff see their owner's stock).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import get_services, get_tenant_id
from qrmenu.database import get_db
from qrmenu.schemas import (
    ApiResponse,
    ErrorResponse,
    InventoryCreate,
    InventoryResponse,
    InventoryUpdate,
    ListResponse,
)
from qrmenu.services.container import ServiceContainer

router = APIRouter(prefix="/api/inventory", tags=["Inventory"])


@router.get("", response_model=ListResponse[InventoryResponse], summary="List Inventory")
async def list_inventory(
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ListResponse[InventoryResponse]:
    items = await services.inventory.list_for_tenant(db, tenant_id)
    return ListResponse(
        count=len(items),
        data=[InventoryResponse.model_validate(item) for item in items],
    )


@router.post(
    "",
    response_model=ApiResponse[InventoryResponse],
    status_code=201,
    responses={409: {"model": ErrorResponse}},
    summary="Add Inventory Item",
)
async def create_inventory_item(
    body: InventoryCreate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[InventoryResponse]:
    item = await services.inventory.create(db, tenant_id, body.model_dump())
    return ApiResponse(
        message="Item added successfully",
        data=InventoryResponse.model_validate(item),
    )


@router.put(
    "/{item_id}",
    response_model=ApiResponse[InventoryResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Update Inventory Item",
)
async def update_inventory_item(
    item_id: str,
    body: InventoryUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[InventoryResponse]:
    item = await services.inventory.update(db, item_id, tenant_id, body.model_dump(exclude_unset=True))
    return ApiResponse(
        message="Item updated successfully",
        data=InventoryResponse.model_validate(item),
    )


@router.delete("/{item_id}", response_model=ApiResponse, summary="Delete Inventory Item")
async def delete_inventory_item(
    item_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse:
    await services.inventory.delete(db, item_id, tenant_id)
    return ApiResponse(message="Item deleted successfully")
