"""
Order endpoints.

Placing and viewing an order is anonymous (the QR token is the
credential); everything under the owner surface is tenant-scoped.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import get_services, get_tenant_id
from qrmenu.database import get_db
from qrmenu.schemas import (
    ApiResponse,
    CustomerOrderResponse,
    ErrorResponse,
    ListResponse,
    OrderCreate,
    OrderListData,
    OrderResponse,
    PublicOrderResponse,
    RestaurantSummary,
    StatusUpdate,
)
from qrmenu.services.container import ServiceContainer

router = APIRouter(prefix="/api/orders", tags=["Orders"])


# =============================================================================
# PUBLIC (customer) ENDPOINTS
# =============================================================================

@router.post(
    "",
    response_model=ApiResponse[OrderResponse],
    status_code=201,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[OrderResponse]:
    """
    Place an order against a QR token.

    The restaurant and table come from the token; notifications go out
    in the background after the order is stored.
    """
    order = await services.orders.place(
        db,
        token=order_data.token,
        customer_name=order_data.customer_name,
        customer_phone=order_data.customer_phone,
        items=[item.model_dump() for item in order_data.items],
        total_amount=order_data.total_amount,
        payment_method=order_data.payment_method,
        notes=order_data.notes,
    )
    return ApiResponse(
        message="Order placed successfully",
        data=OrderResponse.model_validate(order),
    )


@router.get(
    "/customer/{phone}",
    response_model=ListResponse[CustomerOrderResponse],
    summary="Today's Orders For A Phone Number",
)
async def customer_orders(
    phone: str,
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ListResponse[CustomerOrderResponse]:
    rows = await services.orders.list_for_customer_today(db, phone)
    orders = [
        CustomerOrderResponse(
            id=order.id,
            restaurant_name=restaurant_name or "Restaurant",
            table_number=order.table_number,
            items=order.items,
            total_amount=order.total_amount,
            status=order.status,
            payment_method=order.payment_method,
            created_at=order.created_at,
        )
        for order, restaurant_name in rows
    ]
    return ListResponse(count=len(orders), data=orders)


# =============================================================================
# OWNER ENDPOINTS
# =============================================================================

@router.get(
    "/owner/list",
    response_model=ApiResponse[OrderListData],
    summary="List Orders",
)
async def list_orders(
    status: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1),
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[OrderListData]:
    """Newest first. ``status=all`` is the same as no filter."""
    if status == "all":
        status = None
    limit = min(limit, services.settings.order_list_limit)

    total, orders = await services.orders.list_for_tenant(
        db, tenant_id, status=status, skip=skip, limit=limit
    )
    return ApiResponse(
        data=OrderListData(
            total=total,
            orders=[OrderResponse.model_validate(order) for order in orders],
        )
    )


@router.put(
    "/{order_id}/status",
    response_model=ApiResponse[OrderResponse],
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update Order Status",
)
async def update_order_status(
    order_id: str,
    body: StatusUpdate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[OrderResponse]:
    order = await services.orders.transition(db, order_id, tenant_id, body.status)
    return ApiResponse(
        message="Order status updated",
        data=OrderResponse.model_validate(order),
    )


@router.put(
    "/{order_id}/ready",
    response_model=ApiResponse[OrderResponse],
    summary="Mark Order Ready",
)
async def mark_order_ready(
    order_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[OrderResponse]:
    """Marks the order ready and notifies the customer on every channel."""
    order = await services.orders.mark_ready(db, order_id, tenant_id)
    return ApiResponse(
        message="Order marked as ready and customer notified",
        data=OrderResponse.model_validate(order),
    )


@router.put(
    "/{order_id}/complete",
    response_model=ApiResponse[OrderResponse],
    summary="Complete Order",
)
async def complete_order(
    order_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[OrderResponse]:
    order = await services.orders.mark_completed(db, order_id, tenant_id)
    return ApiResponse(
        message="Order completed",
        data=OrderResponse.model_validate(order),
    )


@router.delete(
    "/{order_id}",
    response_model=ApiResponse,
    summary="Delete Order",
)
async def delete_order(
    order_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse:
    await services.orders.remove(db, order_id, tenant_id)
    return ApiResponse(message="Order deleted successfully")


# =============================================================================
# PUBLIC LOOKUP (declared last so it does not shadow the routes above)
# =============================================================================

@router.get(
    "/{order_id}",
    response_model=ApiResponse[PublicOrderResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Get Order",
)
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[PublicOrderResponse]:
    order, owner = await services.orders.get(db, order_id)
    restaurant = RestaurantSummary(
        name=owner.restaurant_name if owner else None,
        email=owner.email if owner else None,
    )
    return ApiResponse(
        data=PublicOrderResponse(
            **OrderResponse.model_validate(order).model_dump(),
            restaurant=restaurant,
        )
    )
