"""
Mock Printer Service

Formats the receipt and keeps it in memory instead of talking to hardware.
"""

import logging
from datetime import datetime

from qrmenu.services.printer.base import BasePrinterService, Bill, PrinterSettings, PrintResult
from qrmenu.services.printer.receipt import format_bill

logger = logging.getLogger(__name__)


class MockPrinterService(BasePrinterService):

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.jobs: list[list[str]] = []

    @property
    def provider_name(self) -> str:
        return "mock"

    async def print_bill(self, bill: Bill, settings: PrinterSettings) -> PrintResult:
        if self.fail:
            return PrintResult(
                success=False,
                printer=self.provider_name,
                error_message="Simulated printer failure",
            )

        lines = format_bill(bill, settings.paper_width)
        self.jobs.append(lines)
        logger.info(f"🖨️ [MOCK PRINTER] Bill #{bill.bill_number}\n" + "\n".join(lines))
        return PrintResult(
            success=True,
            printer=self.provider_name,
            job_id=f"PRINT-{bill.bill_number}-{int(datetime.now().timestamp())}",
        )

    async def health_check(self, settings: PrinterSettings) -> bool:
        return not self.fail
