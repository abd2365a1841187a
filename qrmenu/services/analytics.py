"""
Analytics Aggregator

Read-only metrics over a tenant's orders. Nothing is cached: every call
loads the period's orders and recomputes everything.

Revenue only counts ``completed`` orders; ``pending`` revenue is the
value of orders still in flight (pending, preparing, ready). Periods are
evaluated in UTC.
"""

import calendar
import logging
import math
from collections import Counter, OrderedDict
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Any, Callable, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.models import Order, OrderStatus, utcnow
from qrmenu.services.orders import parse_status
from qrmenu.services.qr_registry import QRTokenRegistry

logger = logging.getLogger(__name__)

PERIODS = ("today", "week", "month", "year", "all")
DEFAULT_PERIOD = "week"
IN_FLIGHT = (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY)
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
EPOCH = datetime(1970, 1, 1)


def _r2(value: float) -> float:
    return round(value, 2)


def _minus_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime) -> tuple[str, datetime]:
    """Resolve a period selector; unknown selectors fall back to a week."""
    if period not in PERIODS:
        period = DEFAULT_PERIOD

    if period == "today":
        start = datetime.combine(now.date(), time.min)
    elif period == "week":
        start = now - timedelta(days=7)
    elif period == "month":
        start = _minus_months(now, 1)
    elif period == "year":
        start = _minus_months(now, 12)
    else:
        start = EPOCH
    return period, start


def _day_index(moment: datetime) -> int:
    # Python weekday(): Monday=0; dashboards expect Sunday first
    return (moment.weekday() + 1) % 7


@dataclass
class OrderHistoryPage:
    total: int
    page: int
    limit: int
    orders: list[Order]

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def summarize(
    orders: Sequence[Order],
    previous_completed: Sequence[Order],
    start: datetime,
    now: datetime,
) -> dict[str, Any]:
    """Pure computation of the stats payload (minus QR stats)."""
    by_status: dict[OrderStatus, list[Order]] = {status: [] for status in OrderStatus}
    for order in orders:
        by_status[OrderStatus(order.status)].append(order)
    completed = by_status[OrderStatus.COMPLETED]

    total_revenue = sum(o.total_amount for o in completed)
    average_order_value = total_revenue / len(completed) if completed else 0
    pending_revenue = sum(o.total_amount for o in orders if OrderStatus(o.status) in IN_FLIGHT)

    today_start = datetime.combine(now.date(), time.min)
    today_orders = [o for o in orders if o.created_at >= today_start]
    today_revenue = sum(
        o.total_amount for o in today_orders if o.status == OrderStatus.COMPLETED
    )

    days = math.ceil((now - start).total_seconds() / 86400)
    daily_average = total_revenue / days if days > 0 else 0

    # Customers
    phone_counts = Counter(o.customer_phone for o in orders)
    unique_customers = len(phone_counts)
    repeat_customers = sum(1 for count in phone_counts.values() if count > 1)

    # Popular items
    item_stats: "OrderedDict[str, dict]" = OrderedDict()
    for order in orders:
        for item in order.items or []:
            entry = item_stats.setdefault(item["name"], {"name": item["name"], "quantity": 0, "revenue": 0.0})
            entry["quantity"] += item["quantity"]
            entry["revenue"] += item["price"] * item["quantity"]
    popular_items = sorted(item_stats.values(), key=lambda e: e["quantity"], reverse=True)[:10]

    payment_methods = Counter(
        getattr(o.payment_method, "value", o.payment_method) for o in orders
    )

    # Time distributions
    hourly = [{"hour": hour, "orders": 0, "revenue": 0.0} for hour in range(24)]
    by_day = [{"day": name, "orders": 0, "revenue": 0.0} for name in DAY_NAMES]
    tables: "OrderedDict[str, dict]" = OrderedDict()
    for order in orders:
        is_completed = order.status == OrderStatus.COMPLETED
        hour_bucket = hourly[order.created_at.hour]
        day_bucket = by_day[_day_index(order.created_at)]
        table_bucket = tables.setdefault(order.table_number or "Unknown", {"orders": 0, "revenue": 0.0})
        for bucket in (hour_bucket, day_bucket, table_bucket):
            bucket["orders"] += 1
            if is_completed:
                bucket["revenue"] += order.total_amount

    peak_hour = 0
    for bucket in hourly:
        if bucket["orders"] > hourly[peak_hour]["orders"]:
            peak_hour = bucket["hour"]

    top_tables = sorted(
        ({"table": table, **data} for table, data in tables.items()),
        key=lambda entry: entry["revenue"],
        reverse=True,
    )[:5]

    # Last seven calendar days, oldest first
    revenue_trend = []
    for days_ago in range(6, -1, -1):
        day_start = today_start - timedelta(days=days_ago)
        day_end = day_start + timedelta(days=1)
        day_orders = [o for o in completed if day_start <= o.created_at < day_end]
        revenue_trend.append({
            "date": day_start.date().isoformat(),
            "revenue": sum(o.total_amount for o in day_orders),
            "orders": len(day_orders),
        })

    # Growth against the equal-length window just before ``start``
    previous_revenue = sum(o.total_amount for o in previous_completed)
    revenue_growth = (
        (total_revenue - previous_revenue) / previous_revenue * 100 if previous_revenue > 0 else 0
    )
    order_growth = (
        (len(completed) - len(previous_completed)) / len(previous_completed) * 100
        if previous_completed
        else 0
    )

    status_distribution = {status.value: len(by_status[status]) for status in OrderStatus}

    return {
        "revenue": {
            "total": _r2(total_revenue),
            "pending": _r2(pending_revenue),
            "average": _r2(average_order_value),
            "daily": _r2(daily_average),
            "today": _r2(today_revenue),
            "growth": _r2(revenue_growth),
        },
        "orders": {
            "total": len(orders),
            **status_distribution,
            "today": len(today_orders),
            "growth": _r2(order_growth),
            "statusDistribution": status_distribution,
        },
        "customers": {
            "unique": unique_customers,
            "repeat": repeat_customers,
            "repeatRate": round(repeat_customers / unique_customers * 100) if unique_customers else 0,
        },
        "popularItems": popular_items,
        "paymentMethods": dict(payment_methods),
        "peakHour": peak_hour,
        "hourlyDistribution": hourly,
        "dayOfWeekData": by_day,
        "topTables": top_tables,
        "revenueTrend": revenue_trend,
    }


class AnalyticsAggregator:
    """Loads orders for a tenant and feeds them to ``summarize``."""

    def __init__(self, registry: QRTokenRegistry, clock: Callable[[], datetime] = utcnow):
        self.registry = registry
        self.clock = clock

    async def stats(self, db: AsyncSession, tenant_id: str, period: str = DEFAULT_PERIOD) -> dict[str, Any]:
        now = self.clock()
        period, start = period_start(period, now)

        orders = await self._orders(db, tenant_id, Order.created_at >= start)
        previous_start = start - (now - start)
        previous_completed = await self._orders(
            db,
            tenant_id,
            Order.created_at >= previous_start,
            Order.created_at < start,
            Order.status == OrderStatus.COMPLETED,
        )

        data = summarize(orders, previous_completed, start, now)
        totals = await self.registry.scan_totals(db, tenant_id)

        logger.debug(f"Analytics for {tenant_id} ({period}): {len(orders)} orders")
        return {
            "period": period,
            "dateRange": {"start": start.isoformat(), "end": now.isoformat()},
            **data,
            "qrStats": {
                "totalCodes": totals.total_codes,
                "totalScans": totals.total_scans,
                "averageScans": totals.average_scans,
            },
        }

    async def order_history(
        self,
        db: AsyncSession,
        tenant_id: str,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> OrderHistoryPage:
        filters = [Order.user_id == tenant_id]
        if status and status != "all":
            filters.append(Order.status == parse_status(status))
        if start_date:
            filters.append(Order.created_at >= start_date)
        if end_date:
            filters.append(Order.created_at <= end_date)

        total = await db.scalar(select(func.count(Order.id)).where(*filters)) or 0
        result = await db.execute(
            select(Order)
            .where(*filters)
            .order_by(Order.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return OrderHistoryPage(total=int(total), page=page, limit=limit, orders=list(result.scalars().all()))

    async def customer_insights(self, db: AsyncSession, tenant_id: str, top: int = 20) -> list[dict[str, Any]]:
        """Top customers by total spend across all of the tenant's orders."""
        orders = await self._orders(db, tenant_id)

        customers: dict[str, dict[str, Any]] = {}
        for order in orders:
            entry = customers.setdefault(order.customer_phone, {
                "phone": order.customer_phone,
                "name": order.customer_name,
                "orderCount": 0,
                "totalSpent": 0.0,
                "lastOrder": order.created_at,
            })
            entry["orderCount"] += 1
            entry["totalSpent"] += order.total_amount
            entry["lastOrder"] = max(entry["lastOrder"], order.created_at)

        ranked = sorted(customers.values(), key=lambda c: c["totalSpent"], reverse=True)[:top]
        return [
            {
                **entry,
                "totalSpent": _r2(entry["totalSpent"]),
                "averageOrderValue": _r2(entry["totalSpent"] / entry["orderCount"]),
                "lastOrder": entry["lastOrder"].isoformat(),
            }
            for entry in ranked
        ]

    @staticmethod
    async def _orders(db: AsyncSession, tenant_id: str, *conditions) -> list[Order]:
        result = await db.execute(
            select(Order)
            .where(Order.user_id == tenant_id, *conditions)
            .order_by(Order.created_at)
        )
        return list(result.scalars().all())
