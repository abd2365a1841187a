"""
Order lifecycle events.

The lifecycle engine describes *what happened* with one of these event
types and hands it to an ``EventDispatcher``; delivery transports live
behind the ``NotificationSink`` interface and never run inside the
request that caused the event.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol, Union

from qrmenu.models import Order, OrderStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderSnapshot:
    """Immutable copy of the order fields notifications need."""
    order_id: str
    order_number: str
    tenant_id: str
    customer_name: str
    customer_phone: str
    table_number: Optional[str]
    total_amount: float
    item_count: int
    items: tuple[dict, ...]
    status: OrderStatus

    @classmethod
    def from_order(cls, order: Order) -> "OrderSnapshot":
        items = tuple(dict(item) for item in (order.items or []))
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            tenant_id=order.user_id,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            table_number=order.table_number,
            total_amount=order.total_amount,
            item_count=len(items),
            items=items,
            status=OrderStatus(order.status),
        )

    def as_payload(self) -> dict:
        return {
            "orderId": self.order_id,
            "orderNumber": self.order_number,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "tableNumber": self.table_number,
            "totalAmount": self.total_amount,
            "itemCount": self.item_count,
            "items": list(self.items),
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class NewOrder:
    """An order was placed; audience is the owner."""
    order: OrderSnapshot
    owner_phone: Optional[str] = None
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class StatusChanged:
    """Generic status transition; audience is the customer."""
    order: OrderSnapshot
    old_status: OrderStatus
    new_status: OrderStatus
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True)
class OrderReady:
    """Order reached ``ready`` through the dedicated action."""
    order: OrderSnapshot
    old_status: OrderStatus
    occurred_at: datetime = field(default_factory=_now)


OrderEvent = Union[NewOrder, StatusChanged, OrderReady]


class NotificationSink(Protocol):
    async def handle(self, event: OrderEvent) -> object:
        ...


class EventDispatcher:
    """
    Fire-and-forget bridge between the engine and a NotificationSink.

    ``emit`` schedules delivery on the running loop and returns at once.
    Pending deliveries are tracked so shutdown (and tests) can wait for
    them with ``drain``.
    """

    def __init__(self, sink: NotificationSink):
        self.sink = sink
        self._pending: set[asyncio.Task] = set()

    def emit(self, event: OrderEvent) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, event: OrderEvent) -> None:
        try:
            await self.sink.handle(event)
        except Exception:
            logger.exception(f"Notification sink failed for {type(event).__name__}")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled delivery to settle."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
