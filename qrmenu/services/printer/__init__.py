"""
Printer Service Factory

Returns Mock or Network printer based on ENV_MODE.
"""

import logging
from functools import lru_cache

from qrmenu.core.config import get_settings
from qrmenu.services.printer.base import (
    BasePrinterService,
    Bill,
    BillLine,
    PrinterSettings,
    PrintResult,
)
from qrmenu.services.printer.mock import MockPrinterService
from qrmenu.services.printer.network import NetworkPrinterService
from qrmenu.services.printer.receipt import bill_from_order, encode_escpos, format_bill

logger = logging.getLogger(__name__)


@lru_cache()
def get_printer_service() -> BasePrinterService:
    """Get the configured printer service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Printer Service: Using MockPrinterService (development mode)")
        return MockPrinterService()
    else:
        logger.info(f"Printer Service: Using NetworkPrinterService ({settings.env_mode.value} mode)")
        return NetworkPrinterService(timeout=settings.printer_timeout_seconds)


def reset_printer_service() -> None:
    """Clear the cached service instance."""
    get_printer_service.cache_clear()


__all__ = [
    "get_printer_service",
    "reset_printer_service",
    "BasePrinterService",
    "Bill",
    "BillLine",
    "PrinterSettings",
    "PrintResult",
    "bill_from_order",
    "encode_escpos",
    "format_bill",
]
