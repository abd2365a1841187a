"""
Bill printing.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import get_services, get_tenant_id
from qrmenu.core.exceptions import ForbiddenError, UpstreamError
from qrmenu.database import get_db
from qrmenu.schemas import ApiResponse, ErrorResponse, PrintRequest, PrintResponse
from qrmenu.services.container import ServiceContainer
from qrmenu.services.printer import PrinterSettings, bill_from_order

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/printer", tags=["Printer"])


@router.post(
    "/print/{order_id}",
    response_model=ApiResponse[PrintResponse],
    responses={404: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Print Bill",
)
async def print_bill(
    order_id: str,
    body: Optional[PrintRequest] = None,
    tenant_id: str = Depends(get_tenant_id),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[PrintResponse]:
    """
    Print the bill for an order. Printer settings in the body override
    the configured network printer.
    """
    order, restaurant = await services.orders.get(db, order_id)
    if order.user_id != tenant_id:
        raise ForbiddenError("Not authorized to print this order")

    settings = services.settings
    override = body.printer_settings if body else None
    printer_settings = PrinterSettings(
        host=(override.network_ip if override and override.network_ip else settings.printer_host),
        port=(override.network_port if override and override.network_ip else settings.printer_port),
        paper_width=(override.paper_width if override and override.paper_width else settings.printer_paper_width),
    )

    result = await services.printer.print_bill(bill_from_order(order, restaurant), printer_settings)
    if not result.success:
        logger.warning(f"Print failed for order {order_id}: {result.error_message}")
        raise UpstreamError("Failed to print bill", detail=result.error_message)

    return ApiResponse(
        message="Bill printed successfully",
        data=PrintResponse(printer=result.printer, job_id=result.job_id, timestamp=result.timestamp),
    )
