"""
Analytics endpoints.
"""

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import get_services, get_tenant_id
from qrmenu.database import get_db
from qrmenu.schemas import ApiResponse, OrderResponse
from qrmenu.services.analytics import DEFAULT_PERIOD
from qrmenu.services.container import ServiceContainer

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/stats", response_model=ApiResponse[dict], summary="Dashboard Statistics")
async def stats(
    period: str = Query(DEFAULT_PERIOD),
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[dict]:
    """``period`` is one of today, week, month, year, all (anything else means week)."""
    data = await services.analytics.stats(db, tenant_id, period)
    return ApiResponse(data=data)


@router.get("/orders", response_model=ApiResponse[dict], summary="Order History")
async def order_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[dict]:
    history = await services.analytics.order_history(
        db,
        tenant_id,
        page=page,
        limit=limit,
        status=status,
        start_date=start_date,
        end_date=end_date,
    )
    data: dict[str, Any] = {
        "orders": [
            OrderResponse.model_validate(order).model_dump(mode="json", by_alias=True)
            for order in history.orders
        ],
        "pagination": {
            "total": history.total,
            "page": history.page,
            "limit": history.limit,
            "pages": history.pages,
        },
    }
    return ApiResponse(data=data)


@router.get("/customers", response_model=ApiResponse[list], summary="Customer Insights")
async def customer_insights(
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[list]:
    customers = await services.analytics.customer_insights(db, tenant_id)
    return ApiResponse(data=customers)
