"""
Notification Fan-Out

Delivers one order lifecycle event over three independent channels:

    1. realtime room broadcast (owner room, or order + customer rooms)
    2. web push to every subscription of the target
    3. SMS through the configured gateway

Channels run concurrently and every one of them reports a
``ChannelResult``. Failures are logged here, in one place, and never
raised: the lifecycle write that produced the event has already been
committed and must not be affected by delivery.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qrmenu.services.events import NewOrder, OrderEvent, OrderReady, OrderSnapshot, StatusChanged
from qrmenu.services.notifications import templates
from qrmenu.services.notifications.base import BaseSMSService
from qrmenu.services.push.base import BasePushService
from qrmenu.services.push.registry import PushSubscriptionRegistry
from qrmenu.services.realtime import RealtimeDirectory, customer_room, order_room, owner_room

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelResult:
    """Outcome of one channel for one event."""
    channel: str
    success: bool
    delivered: int = 0
    error: Optional[str] = None


class NotificationFanOut:
    """Implements NotificationSink for the order lifecycle events."""

    def __init__(
        self,
        directory: RealtimeDirectory,
        push_service: BasePushService,
        push_registry: PushSubscriptionRegistry,
        sms_service: BaseSMSService,
        session_factory: async_sessionmaker[AsyncSession],
        currency_symbol: str = "₹",
    ):
        self.directory = directory
        self.push_service = push_service
        self.push_registry = push_registry
        self.sms_service = sms_service
        self.session_factory = session_factory
        self.currency_symbol = currency_symbol

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    async def handle(self, event: OrderEvent) -> list[ChannelResult]:
        if isinstance(event, NewOrder):
            channels = self._new_order(event)
        elif isinstance(event, OrderReady):
            channels = self._order_ready(event)
        elif isinstance(event, StatusChanged):
            channels = self._status_changed(event)
        else:
            logger.warning(f"No fan-out defined for {type(event).__name__}")
            return []

        names = list(channels)
        outcomes = await asyncio.gather(*channels.values(), return_exceptions=True)

        results = []
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                outcome = ChannelResult(channel=name, success=False, error=f"{type(outcome).__name__}: {outcome}")
            results.append(outcome)

        self._log_results(event, results)
        return results

    # =========================================================================
    # PER-EVENT PLANS
    # =========================================================================

    def _new_order(self, event: NewOrder) -> dict[str, Awaitable[ChannelResult]]:
        order = event.order
        payload = self._notification(
            "new_order",
            templates.NEW_ORDER_TITLE,
            templates.new_order_message(order.order_number, order.customer_name),
            order.as_payload(),
            event,
        )
        push = templates.owner_new_order_push(
            order.item_count, order.customer_name, order.total_amount, self.currency_symbol
        )

        texts = [(
            order.customer_phone,
            templates.confirmation_sms(
                order.customer_name, order.order_number, order.total_amount, self.currency_symbol
            ),
        )]
        if event.owner_phone:
            texts.append((
                event.owner_phone,
                templates.owner_alert_sms(
                    order.order_number, order.customer_name, order.total_amount, self.currency_symbol
                ),
            ))

        return {
            "realtime": self._broadcast([owner_room(order.tenant_id)], payload),
            "push": self._push(user_id=order.tenant_id, message=push),
            "sms": self._sms(texts),
        }

    def _status_changed(self, event: StatusChanged) -> dict[str, Awaitable[ChannelResult]]:
        order = event.order
        status = event.new_status.value
        payload = self._notification(
            "order_status",
            templates.ORDER_UPDATE_TITLE,
            templates.status_message(order.order_number, status),
            {**self._customer_data(order), "status": status},
            event,
        )
        return {
            "realtime": self._broadcast(self._customer_rooms(order), payload),
            "push": self._push(phone=order.customer_phone, message=templates.status_push(
                order.order_id, order.order_number, status
            )),
            "sms": self._sms([(
                order.customer_phone,
                templates.status_sms(order.customer_name, order.order_number, status),
            )]),
        }

    def _order_ready(self, event: OrderReady) -> dict[str, Awaitable[ChannelResult]]:
        order = event.order
        payload = self._notification(
            "order_ready",
            templates.ORDER_READY_TITLE,
            templates.order_ready_message(order.order_number),
            self._customer_data(order),
            event,
        )
        return {
            "realtime": self._broadcast(self._customer_rooms(order), payload),
            "push": self._push(phone=order.customer_phone, message=templates.ready_push(
                order.order_id, order.order_number
            )),
            "sms": self._sms([(
                order.customer_phone,
                templates.ready_sms(order.customer_name, order.order_number),
            )]),
        }

    # =========================================================================
    # CHANNELS
    # =========================================================================

    async def _broadcast(self, rooms: list[str], payload: dict) -> ChannelResult:
        delivered = 0
        for room in rooms:
            delivered += await self.directory.broadcast(room, payload)
        return ChannelResult(channel="realtime", success=True, delivered=delivered)

    async def _push(
        self,
        message: templates.PushMessage,
        user_id: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> ChannelResult:
        async with self.session_factory() as db:
            if user_id:
                subscriptions = await self.push_registry.for_user(db, user_id)
            else:
                subscriptions = await self.push_registry.for_phone(db, phone)

        if not subscriptions:
            return ChannelResult(channel="push", success=True, delivered=0)

        payload = message.as_payload()
        outcomes = await asyncio.gather(
            *(self.push_service.send(s.as_webpush_info(), payload) for s in subscriptions),
            return_exceptions=True,
        )

        delivered, gone, errors = 0, [], []
        for subscription, outcome in zip(subscriptions, outcomes):
            if isinstance(outcome, BaseException):
                errors.append(f"{subscription.id}: {type(outcome).__name__}: {outcome}")
            elif outcome.success:
                delivered += 1
            elif outcome.gone:
                gone.append(subscription.id)
            else:
                errors.append(f"{subscription.id}: {outcome.error_message}")

        if gone:
            await self._remove_gone(gone)

        return ChannelResult(
            channel="push",
            success=not errors,
            delivered=delivered,
            error="; ".join(errors) or None,
        )

    async def _remove_gone(self, subscription_ids: list[str]) -> None:
        async with self.session_factory() as db:
            for subscription_id in subscription_ids:
                await self.push_registry.remove(db, subscription_id)
        logger.info(f"Removed {len(subscription_ids)} expired push subscription(s)")

    async def _sms(self, texts: list[tuple[str, str]]) -> ChannelResult:
        outcomes = await asyncio.gather(
            *(self.sms_service.send_sms(phone, body) for phone, body in texts),
            return_exceptions=True,
        )

        delivered, errors = 0, []
        for (phone, _), outcome in zip(texts, outcomes):
            if isinstance(outcome, BaseException):
                errors.append(f"{phone}: {type(outcome).__name__}: {outcome}")
            elif outcome.success:
                delivered += 1
            else:
                errors.append(f"{phone}: {outcome.error_message}")

        return ChannelResult(
            channel="sms",
            success=not errors,
            delivered=delivered,
            error="; ".join(errors) or None,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _notification(kind: str, title: str, message: str, data: dict, event: OrderEvent) -> dict:
        return {
            "type": kind,
            "title": title,
            "message": message,
            "data": data,
            "timestamp": event.occurred_at.isoformat(),
        }

    @staticmethod
    def _customer_data(order: OrderSnapshot) -> dict:
        return {
            "orderId": order.order_id,
            "orderNumber": order.order_number,
            "customerName": order.customer_name,
            "totalAmount": order.total_amount,
        }

    @staticmethod
    def _customer_rooms(order: OrderSnapshot) -> list[str]:
        return [order_room(order.order_id), customer_room(order.customer_phone)]

    @staticmethod
    def _log_results(event: OrderEvent, results: list[ChannelResult]) -> None:
        label = f"{type(event).__name__} #{event.order.order_number}"
        for result in results:
            if result.success:
                logger.info(f"{label} via {result.channel}: {result.delivered} delivered")
            else:
                logger.warning(f"{label} via {result.channel} failed: {result.error}")
