"""
Dashboard Overview

The at-a-glance numbers shown on the owner's home screen: QR code and
scan counters, today's orders and revenue, the pending queue, and which
codes were scanned most recently.

Unlike ``AnalyticsAggregator`` revenue here is booked revenue: every
order that was not cancelled counts, whatever its stage.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Any, Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.models import Order, OrderStatus, QRCode, utcnow
from qrmenu.services.qr_registry import QRTokenRegistry

logger = logging.getLogger(__name__)

RECENT_SCAN_DAYS = 7
ACTIVITY_LIMIT = 10


def scan_growth(recent_scans: int, total_scans: int) -> str:
    """Share of all scans held by recently scanned codes, as ``+N%``."""
    growth = round(recent_scans / total_scans * 100) if total_scans else 0
    return f"+{growth}%" if growth > 0 else "0%"


def _code_summary(qr: QRCode) -> dict[str, Any]:
    return {
        "id": qr.id,
        "name": qr.name,
        "type": getattr(qr.type, "value", qr.type),
        "tableNumber": qr.table_number,
        "scans": qr.scans,
    }


class DashboardService:

    def __init__(self, registry: QRTokenRegistry, clock: Callable[[], datetime] = utcnow):
        self.registry = registry
        self.clock = clock

    async def stats(self, db: AsyncSession, tenant_id: str) -> dict[str, Any]:
        now = self.clock()
        today_start = datetime.combine(now.date(), time.min)

        totals = await self.registry.scan_totals(db, tenant_id)
        recent_scans = await db.scalar(
            select(func.coalesce(func.sum(QRCode.scans), 0)).where(
                QRCode.user_id == tenant_id,
                QRCode.is_active.is_(True),
                QRCode.last_scanned_at >= now - timedelta(days=RECENT_SCAN_DAYS),
            )
        ) or 0

        result = await db.execute(
            select(Order.status, Order.total_amount, Order.created_at).where(Order.user_id == tenant_id)
        )
        total_orders = today_orders = pending_orders = 0
        today_revenue = total_revenue = 0.0
        for status, amount, created_at in result.all():
            status = OrderStatus(status)
            is_today = created_at >= today_start
            total_orders += 1
            today_orders += is_today
            pending_orders += status == OrderStatus.PENDING
            if status != OrderStatus.CANCELLED:
                total_revenue += amount
                if is_today:
                    today_revenue += amount

        logger.debug(f"Dashboard for {tenant_id}: {total_orders} orders, {totals.total_scans} scans")
        return {
            "totalQRCodes": totals.total_codes,
            "activeQRCodes": totals.total_codes,
            "totalScans": totals.total_scans,
            "recentScans": int(recent_scans),
            "scanGrowth": scan_growth(int(recent_scans), totals.total_scans),
            "totalOrders": total_orders,
            "todayOrders": today_orders,
            "pendingOrders": pending_orders,
            "todayRevenue": round(today_revenue, 2),
            "totalRevenue": round(total_revenue, 2),
        }

    async def recent_activity(
        self, db: AsyncSession, tenant_id: str, limit: int = ACTIVITY_LIMIT
    ) -> list[dict[str, Any]]:
        """Codes ordered by their latest scan; never-scanned codes come last."""
        result = await db.execute(
            select(QRCode)
            .where(QRCode.user_id == tenant_id)
            .order_by(QRCode.last_scanned_at.is_(None), QRCode.last_scanned_at.desc())
            .limit(limit)
        )
        return [
            {
                **_code_summary(qr),
                "lastScannedAt": qr.last_scanned_at.isoformat() if qr.last_scanned_at else None,
            }
            for qr in result.scalars().all()
        ]

    async def qr_summary(self, db: AsyncSession, tenant_id: str) -> dict[str, Any]:
        result = await db.execute(
            select(QRCode)
            .where(QRCode.user_id == tenant_id, QRCode.is_active.is_(True))
            .order_by(QRCode.created_at.desc())
        )
        codes = [
            {**_code_summary(qr), "createdAt": qr.created_at.isoformat()}
            for qr in result.scalars().all()
        ]
        return {"total": len(codes), "qrCodes": codes}
