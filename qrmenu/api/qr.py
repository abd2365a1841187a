"""
QR code endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import get_services, get_tenant_id
from qrmenu.database import get_db
from qrmenu.models import User
from qrmenu.schemas import (
    ApiResponse,
    ErrorResponse,
    ListResponse,
    QRCodeResponse,
    QRGenerate,
    ScanResponse,
)
from qrmenu.services.container import ServiceContainer

router = APIRouter(prefix="/api/qr", tags=["QR Codes"])


@router.post(
    "/generate",
    response_model=ApiResponse[QRCodeResponse],
    status_code=201,
    responses={409: {"model": ErrorResponse}},
    summary="Generate QR Code",
)
async def generate_qr(
    body: QRGenerate,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[QRCodeResponse]:
    """Table codes carry the table number into every order placed through them."""
    owner = await db.get(User, tenant_id)
    qr_code = await services.registry.issue(
        db,
        tenant_id,
        name=body.name,
        qr_type=body.type,
        table_number=body.table_number,
        restaurant_name=owner.restaurant_name if owner else None,
    )
    return ApiResponse(
        message="QR Code generated successfully",
        data=QRCodeResponse.model_validate(qr_code),
    )


@router.get(
    "",
    response_model=ListResponse[QRCodeResponse],
    summary="List QR Codes",
)
async def list_qr_codes(
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ListResponse[QRCodeResponse]:
    codes = await services.registry.list_for_tenant(db, tenant_id)
    return ListResponse(
        count=len(codes),
        data=[QRCodeResponse.model_validate(code) for code in codes],
    )


@router.post(
    "/scan/{token}",
    response_model=ApiResponse[ScanResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Record QR Scan",
)
async def scan_qr(
    token: str,
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[ScanResponse]:
    scan = await services.registry.record_scan(db, token)
    return ApiResponse(data=ScanResponse(url=scan.url, table_number=scan.table_number))


@router.get(
    "/{qr_id}",
    response_model=ApiResponse[QRCodeResponse],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get QR Code",
)
async def get_qr_code(
    qr_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[QRCodeResponse]:
    qr_code = await services.registry.get_for_tenant(db, qr_id, tenant_id)
    return ApiResponse(data=QRCodeResponse.model_validate(qr_code))


@router.delete(
    "/{qr_id}",
    response_model=ApiResponse,
    summary="Delete QR Code",
)
async def delete_qr_code(
    qr_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse:
    await services.registry.delete(db, qr_id, tenant_id)
    return ApiResponse(message="QR Code deleted successfully")
