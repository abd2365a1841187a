"""
Dashboard endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import get_services, get_tenant_id
from qrmenu.database import get_db
from qrmenu.schemas import ApiResponse
from qrmenu.services.container import ServiceContainer

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=ApiResponse[dict], summary="Dashboard Overview")
async def stats(
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[dict]:
    data = await services.dashboard.stats(db, tenant_id)
    return ApiResponse(data={"stats": data})


@router.get("/activity", response_model=ApiResponse[dict], summary="Recently Scanned QR Codes")
async def activity(
    limit: int = Query(10, ge=1, le=50),
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[dict]:
    data = await services.dashboard.recent_activity(db, tenant_id, limit=limit)
    return ApiResponse(data={"activity": data})


@router.get("/qr-summary", response_model=ApiResponse[dict], summary="Active QR Codes")
async def qr_summary(
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[dict]:
    data = await services.dashboard.qr_summary(db, tenant_id)
    return ApiResponse(data=data)
