"""
Thermal Printer Abstract Base Class

Defines the interface for printing a bill.
Supports both Mock (development) and Real (network ESC/POS) implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class BillLine:
    name: str
    quantity: int
    price: float

    @property
    def total(self) -> float:
        return self.price * self.quantity


@dataclass(frozen=True)
class Bill:
    """Everything printed on one receipt."""
    bill_number: str
    restaurant_name: str
    customer_name: str
    customer_phone: str
    lines: tuple[BillLine, ...]
    total_amount: float
    issued_at: datetime
    table_number: Optional[str] = None
    restaurant_address: Optional[str] = None
    restaurant_phone: Optional[str] = None

    @property
    def subtotal(self) -> float:
        return sum(line.total for line in self.lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


@dataclass(frozen=True)
class PrinterSettings:
    host: Optional[str] = None
    port: int = 9100
    paper_width: int = 32


@dataclass
class PrintResult:
    """Result from a print attempt."""
    success: bool
    printer: str = "unknown"
    job_id: Optional[str] = None
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


class BasePrinterService(ABC):
    """Abstract base class for receipt printers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def print_bill(self, bill: Bill, settings: PrinterSettings) -> PrintResult:
        """Print a bill. Connection problems are reported in the result, not raised."""
        pass

    @abstractmethod
    async def health_check(self, settings: PrinterSettings) -> bool:
        pass
