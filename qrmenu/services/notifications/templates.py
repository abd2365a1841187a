"""
Customer and owner facing notification copy.

One place for every string the fan-out sends, so realtime, push and SMS
stay consistent with each other.
"""

from dataclasses import dataclass
from typing import Optional

from qrmenu.models import OrderStatus


def format_amount(amount: float) -> str:
    """300.0 -> '300', 12.5 -> '12.50'."""
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:.2f}"


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    url: str

    def as_payload(self) -> dict:
        return {
            "title": self.title,
            "body": self.body,
            "icon": "/favicon.ico",
            "badge": "/favicon.ico",
            "data": {"url": self.url},
        }


# =============================================================================
# REALTIME (in-app) COPY
# =============================================================================

NEW_ORDER_TITLE = "New Order Received! 🎉"
ORDER_READY_TITLE = "🎉 Your Order is Ready!"
ORDER_UPDATE_TITLE = "Order Update"


def new_order_message(order_number: str, customer_name: str) -> str:
    return f"New order #{order_number} from {customer_name}"


def order_ready_message(order_number: str) -> str:
    return (
        f"Great news! Your order #{order_number} is ready for pickup. "
        f"Thank you for your patience! 😊"
    )


def status_message(order_number: str, status: str) -> str:
    """Fixed copy per status; anything unrecognized gets the generic line."""
    messages = {
        OrderStatus.PREPARING.value: f"Your order #{order_number} is being prepared! 👨‍🍳",
        OrderStatus.READY.value: f"Your order #{order_number} is ready for pickup! 🎉",
        OrderStatus.COMPLETED.value: f"Your order #{order_number} has been completed. Thank you! 💚",
        OrderStatus.CANCELLED.value: f"Your order #{order_number} has been cancelled. 😔",
    }
    return messages.get(status, f"Order status updated to {status}")


# =============================================================================
# WEB PUSH COPY
# =============================================================================

def owner_new_order_push(item_count: int, customer_name: str, total: float, symbol: str) -> PushMessage:
    return PushMessage(
        title="New Order Received",
        body=f"{item_count} item(s) • {customer_name} • {symbol}{format_amount(total)}",
        url="/owner/orders",
    )


def customer_order_url(order_id: str) -> str:
    return f"/m/menu/q/token/order/{order_id}"


def status_push(order_id: str, order_number: str, status: str) -> PushMessage:
    return PushMessage(
        title=f"Order {status.upper()}",
        body=f"Order #{order_number} is now {status}",
        url=customer_order_url(order_id),
    )


def ready_push(order_id: str, order_number: str) -> PushMessage:
    return PushMessage(
        title="Order Ready 🎉",
        body=f"Order #{order_number} is ready for pickup",
        url=customer_order_url(order_id),
    )


# =============================================================================
# SMS COPY
# =============================================================================

def confirmation_sms(customer_name: str, order_number: str, total: float, symbol: str) -> str:
    return (
        f"✅ Thank you {customer_name}! Your order #{order_number} "
        f"({symbol}{format_amount(total)}) has been received. "
        f"We'll notify you when it's ready!"
    )


def owner_alert_sms(order_number: str, customer_name: str, total: float, symbol: str) -> str:
    return (
        f"🔔 New Order #{order_number}! Customer: {customer_name}, "
        f"Amount: {symbol}{format_amount(total)}. Check your dashboard now!"
    )


def ready_sms(customer_name: str, order_number: str, brand: Optional[str] = "QR Menu") -> str:
    message = (
        f"🎉 Hi {customer_name}! Your order #{order_number} is ready for pickup. "
        f"Thank you for your patience!"
    )
    return f"{message} - {brand}" if brand else message


def status_sms(customer_name: str, order_number: str, status: str) -> str:
    messages = {
        OrderStatus.PREPARING.value: f"👨‍🍳 Hi {customer_name}! Your order #{order_number} is being prepared.",
        OrderStatus.READY.value: f"🎉 Hi {customer_name}! Your order #{order_number} is ready for pickup!",
        OrderStatus.COMPLETED.value: (
            f"💚 Thank you {customer_name}! Your order #{order_number} has been completed. "
            f"We hope to see you again!"
        ),
        OrderStatus.CANCELLED.value: (
            f"😔 Hi {customer_name}, your order #{order_number} has been cancelled. "
            f"Please contact us for more details."
        ),
    }
    return messages.get(status, f"Order #{order_number} status: {status}")
