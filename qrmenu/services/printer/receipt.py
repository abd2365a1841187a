"""
Receipt layout and ESC/POS encoding.
"""

from typing import Optional

from qrmenu.models import Order, User
from qrmenu.services.printer.base import Bill, BillLine

# ESC/POS control sequences
ESC_INIT = b"\x1b@"
ESC_ALIGN_LEFT = b"\x1ba\x00"
ESC_ALIGN_CENTER = b"\x1ba\x01"
ESC_BOLD_ON = b"\x1bE\x01"
ESC_BOLD_OFF = b"\x1bE\x00"
GS_CUT = b"\x1dV\x00"

CURRENCY = "Rs."


def bill_from_order(order: Order, restaurant: Optional[User]) -> Bill:
    return Bill(
        bill_number=order.order_number,
        restaurant_name=(restaurant.restaurant_name if restaurant else None) or "QR Menu Restaurant",
        restaurant_address=restaurant.restaurant_address if restaurant else None,
        restaurant_phone=restaurant.phone if restaurant else None,
        customer_name=order.customer_name or "Guest",
        customer_phone=order.customer_phone or "N/A",
        table_number=order.table_number,
        lines=tuple(
            BillLine(name=item["name"], quantity=int(item["quantity"]), price=float(item["price"]))
            for item in order.items or []
        ),
        total_amount=order.total_amount,
        issued_at=order.created_at,
    )


def _money(amount: float) -> str:
    return f"{CURRENCY}{amount:.2f}"


def _left_right(left: str, right: str, width: int) -> str:
    gap = max(width - len(left) - len(right), 1)
    return f"{left}{' ' * gap}{right}"


def format_bill(bill: Bill, width: int = 32) -> list[str]:
    """Plain-text receipt lines, each at most ``width`` characters where possible."""
    rule = "-" * width
    lines = [
        bill.restaurant_name.upper().center(width),
    ]
    if bill.restaurant_address:
        lines.append(bill.restaurant_address.center(width))
    if bill.restaurant_phone:
        lines.append(f"Ph: {bill.restaurant_phone}".center(width))
    lines += [
        "Thank you for your order!".center(width),
        rule,
        f"Date: {bill.issued_at:%d/%m/%Y}",
        f"Time: {bill.issued_at:%H:%M}",
        f"Bill #: {bill.bill_number}",
    ]
    if bill.table_number:
        lines.append(f"Table: {bill.table_number}")
    lines += [
        "",
        f"Customer: {bill.customer_name}",
        f"Phone: {bill.customer_phone}",
        rule,
        "ITEMS:",
    ]
    for line in bill.lines:
        lines.append(line.name[:width])
        lines.append(_left_right(f"  {line.quantity} x {_money(line.price)}", _money(line.total), width))
    lines += [
        rule,
        _left_right("Subtotal:", _money(bill.subtotal), width),
        "",
        _left_right("TOTAL:", _money(bill.total_amount), width),
        rule,
        f"Total Items: {bill.item_count}".center(width),
        "",
        "*** Thank You! Visit Again ***".center(width),
    ]
    return lines


def encode_escpos(lines: list[str]) -> bytes:
    """Wrap receipt lines in the ESC/POS commands a network printer expects."""
    header, *rest = lines or [""]
    return b"".join([
        ESC_INIT,
        ESC_ALIGN_CENTER,
        ESC_BOLD_ON,
        header.encode("cp437", errors="replace"),
        b"\n",
        ESC_BOLD_OFF,
        ESC_ALIGN_LEFT,
        "\n".join(rest).encode("cp437", errors="replace"),
        b"\n\n\n\n",
        GS_CUT,
    ])
