"""
Network Thermal Printer

Sends ESC/POS bytes to a receipt printer over a raw TCP socket
(port 9100 on most Epson/Star compatible printers).
"""

import asyncio
import logging
from datetime import datetime

from qrmenu.services.printer.base import BasePrinterService, Bill, PrinterSettings, PrintResult
from qrmenu.services.printer.receipt import encode_escpos, format_bill

logger = logging.getLogger(__name__)


class NetworkPrinterService(BasePrinterService):

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    @property
    def provider_name(self) -> str:
        return "network"

    async def print_bill(self, bill: Bill, settings: PrinterSettings) -> PrintResult:
        if not settings.host:
            return PrintResult(
                success=False,
                printer=self.provider_name,
                error_message="Printer IP address is required for network printer",
            )

        payload = encode_escpos(format_bill(bill, settings.paper_width))
        target = f"{settings.host}:{settings.port}"

        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(settings.host, settings.port), timeout=self.timeout
            )
            try:
                writer.write(payload)
                await asyncio.wait_for(writer.drain(), timeout=self.timeout)
            finally:
                writer.close()
                await writer.wait_closed()
        except asyncio.TimeoutError:
            logger.error(f"❌ Printer {target} timed out")
            return PrintResult(
                success=False,
                printer=self.provider_name,
                error_message=f"Printer at {target} did not respond",
            )
        except OSError as e:
            logger.error(f"❌ Printer {target} unreachable: {e}")
            return PrintResult(
                success=False,
                printer=self.provider_name,
                error_message=f"Could not connect to printer at {target}",
            )

        job_id = f"PRINT-{bill.bill_number}-{int(datetime.now().timestamp())}"
        logger.info(f"🖨️ Bill #{bill.bill_number} sent to {target} ({len(payload)} bytes)")
        return PrintResult(success=True, printer=f"network:{target}", job_id=job_id)

    async def health_check(self, settings: PrinterSettings) -> bool:
        if not settings.host:
            return False
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(settings.host, settings.port), timeout=self.timeout
            )
        except (asyncio.TimeoutError, OSError):
            return False
        writer.close()
        await writer.wait_closed()
        return True
