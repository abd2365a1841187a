"""
Order Lifecycle Engine

Sole authority on order status transitions and timestamps. Writes are
committed first; notification events are emitted afterwards and never
awaited, so a delivery problem can never undo or fail a lifecycle write.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from datetime import datetime, time
from typing import Callable, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from qrmenu.models import Order, OrderStatus, PaymentMethod, User, utcnow
from qrmenu.services.events import (
    EventDispatcher,
    NewOrder,
    OrderEvent,
    OrderReady,
    OrderSnapshot,
    StatusChanged,
)
from qrmenu.services.qr_registry import QRTokenRegistry

logger = logging.getLogger(__name__)


# =============================================================================
# TRANSITION TABLE
# =============================================================================

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

# Forward moves may skip steps (a counter order can go straight to
# completed); cancelled is reachable from every non-terminal state.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PREPARING: frozenset({
        OrderStatus.READY,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.READY: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Same-status moves are idempotent no-ops and always allowed."""
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(
            "Invalid status",
            detail={"allowed": [s.value for s in OrderStatus], "received": value},
        )


def _snapshot_items(items: Sequence[Mapping]) -> list[dict]:
    """Copy name/price/quantity; orders never reference live menu rows."""
    snapshot = []
    for index, item in enumerate(items):
        name = str(item.get("name") or "").strip()
        price = item.get("price")
        quantity = item.get("quantity")
        if not name or price is None or quantity is None:
            raise ValidationError(f"Item {index + 1} needs a name, price and quantity")
        try:
            price = float(price)
            quantity = int(quantity)
        except (TypeError, ValueError):
            raise ValidationError(f"Item {index + 1} has a non-numeric price or quantity")
        if not math.isfinite(price) or price < 0 or quantity < 1:
            raise ValidationError(f"Item {index + 1} has an invalid price or quantity")

        line = {"name": name, "price": price, "quantity": quantity}
        if item.get("item_id"):
            line["item_id"] = str(item["item_id"])
        snapshot.append(line)
    return snapshot


def _is_positive_amount(value: object) -> bool:
    """Finite and strictly positive; NaN and infinities are rejected."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(amount) and amount > 0


class OrderLifecycleEngine:
    """Places orders and moves them through the status graph."""

    def __init__(self, registry: QRTokenRegistry, dispatcher: EventDispatcher):
        self.registry = registry
        self.dispatcher = dispatcher

    # =========================================================================
    # CREATION
    # =========================================================================

    async def place(
        self,
        db: AsyncSession,
        token: str,
        customer_name: str,
        customer_phone: str,
        items: Sequence[Mapping],
        total_amount: float,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        notes: Optional[str] = None,
    ) -> Order:
        """
        Create a pending order attributed to the token's tenant.

        Everything is validated before the INSERT. ``total_amount`` is
        stored exactly as the client sent it and is not recomputed from
        the line items.
        """
        if not token or not customer_name or not customer_phone:
            raise ValidationError("Missing required fields")
        if not items:
            raise ValidationError("Order must contain at least one item")
        if not _is_positive_amount(total_amount):
            raise ValidationError("Total amount must be greater than zero")

        line_items = _snapshot_items(items)
        resolved = await self.registry.resolve(db, token)

        order = Order(
            user_id=resolved.tenant_id,
            qr_token=resolved.token,
            table_number=resolved.table_number,
            customer_name=customer_name,
            customer_phone=customer_phone,
            items=line_items,
            total_amount=float(total_amount),
            payment_method=payment_method,
            notes=notes or "",
            status=OrderStatus.PENDING,
        )
        db.add(order)
        await db.commit()
        await db.refresh(order)

        logger.info(
            f"Order #{order.order_number} placed for tenant {order.user_id} "
            f"(table={order.table_number}, total={order.total_amount})"
        )

        owner_phone = await db.scalar(select(User.phone).where(User.id == order.user_id))
        self._emit(NewOrder(order=OrderSnapshot.from_order(order), owner_phone=owner_phone))
        return order

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    async def transition(
        self,
        db: AsyncSession,
        order_id: str,
        tenant_id: str,
        target_status: Union[str, OrderStatus],
    ) -> Order:
        """Generic transition; emits StatusChanged."""
        return await self._apply(
            db,
            order_id,
            tenant_id,
            parse_status(target_status),
            lambda snapshot, old, new: StatusChanged(order=snapshot, old_status=old, new_status=new),
        )

    async def mark_ready(self, db: AsyncSession, order_id: str, tenant_id: str) -> Order:
        """Move to ready; emits the customer-facing OrderReady instead of StatusChanged."""
        return await self._apply(
            db,
            order_id,
            tenant_id,
            OrderStatus.READY,
            lambda snapshot, old, new: OrderReady(order=snapshot, old_status=old),
        )

    async def mark_completed(self, db: AsyncSession, order_id: str, tenant_id: str) -> Order:
        return await self.transition(db, order_id, tenant_id, OrderStatus.COMPLETED)

    async def _apply(
        self,
        db: AsyncSession,
        order_id: str,
        tenant_id: str,
        target: OrderStatus,
        make_event: Callable[[OrderSnapshot, OrderStatus, OrderStatus], OrderEvent],
    ) -> Order:
        order = await self._load_owned(db, order_id, tenant_id, action="update")

        current = OrderStatus(order.status)
        if not can_transition(current, target):
            raise ValidationError(
                f"Cannot change order status from {current.value} to {target.value}",
                detail={"current": current.value, "target": target.value},
            )

        if current != target:
            order.status = target
            if target == OrderStatus.COMPLETED and order.completed_at is None:
                order.completed_at = utcnow()
            await db.commit()
            await db.refresh(order)
            logger.info(f"Order #{order.order_number}: {current.value} -> {target.value}")
        else:
            logger.debug(f"Order #{order.order_number} already {current.value}")

        self._emit(make_event(OrderSnapshot.from_order(order), current, target))
        return order

    # =========================================================================
    # ADMINISTRATION
    # =========================================================================

    async def remove(self, db: AsyncSession, order_id: str, tenant_id: str) -> None:
        """Hard delete. No event: this is not a customer-facing change."""
        order = await self._load_owned(db, order_id, tenant_id, action="delete")
        await db.delete(order)
        await db.commit()
        logger.info(f"Order {order_id} deleted by tenant {tenant_id}")

    # =========================================================================
    # READS
    # =========================================================================

    async def get(self, db: AsyncSession, order_id: str) -> tuple[Order, Optional[User]]:
        """Public lookup by id, with the owning restaurant."""
        order = await db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        owner = await db.get(User, order.user_id)
        return order, owner

    async def list_for_tenant(
        self,
        db: AsyncSession,
        tenant_id: str,
        status: Optional[Union[str, OrderStatus]] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[int, list[Order]]:
        """Newest first. Returns ``(total matching, page)``."""
        filters = [Order.user_id == tenant_id]
        if status:
            filters.append(Order.status == parse_status(status))

        total = await db.scalar(select(func.count(Order.id)).where(*filters)) or 0
        result = await db.execute(
            select(Order)
            .where(*filters)
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return int(total), list(result.scalars().all())

    async def list_for_customer_today(
        self,
        db: AsyncSession,
        phone: str,
        now: Optional[datetime] = None,
    ) -> list[tuple[Order, Optional[str]]]:
        """Today's orders for a phone number across restaurants, newest first."""
        start_of_day = datetime.combine((now or utcnow()).date(), time.min)
        result = await db.execute(
            select(Order, User.restaurant_name)
            .outerjoin(User, User.id == Order.user_id)
            .where(Order.customer_phone == phone, Order.created_at >= start_of_day)
            .order_by(Order.created_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _load_owned(
        self, db: AsyncSession, order_id: str, tenant_id: str, action: str
    ) -> Order:
        order = await db.get(Order, order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.user_id != tenant_id:
            logger.warning(f"Tenant {tenant_id} tried to {action} order {order_id} of {order.user_id}")
            raise ForbiddenError(f"Not authorized to {action} this order")
        return order

    def _emit(self, event: OrderEvent) -> None:
        try:
            self.dispatcher.emit(event)
        except Exception:
            logger.exception(f"Could not dispatch {type(event).__name__} for order {event.order.order_id}")
