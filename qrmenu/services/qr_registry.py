"""
QR Token Registry

Maps opaque tokens to a tenant and (optionally) a table. A token is the
only way an anonymous customer request gets attributed to a restaurant.
"""

import asyncio
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from qrmenu.models import QRCode, QRType, utcnow
from qrmenu.services.qr_render import BaseQRRenderer, QRStyle

logger = logging.getLogger(__name__)

# Same message for unknown and inactive tokens
TOKEN_NOT_FOUND = "QR code not found or inactive"


@dataclass(frozen=True)
class ResolvedToken:
    token: str
    tenant_id: str
    table_number: Optional[str]


@dataclass(frozen=True)
class ScanResult:
    url: str
    table_number: Optional[str]


@dataclass(frozen=True)
class ScanTotals:
    total_codes: int
    total_scans: int

    @property
    def average_scans(self) -> int:
        return round(self.total_scans / self.total_codes) if self.total_codes else 0


def restaurant_slug(restaurant_name: Optional[str]) -> str:
    if not restaurant_name:
        return "menu"
    return re.sub(r"\s+", "-", restaurant_name.strip().lower())


class QRTokenRegistry:
    """Issues, resolves and counts scans of QR tokens."""

    def __init__(self, renderer: BaseQRRenderer, frontend_base_url: str):
        self.renderer = renderer
        self.frontend_base_url = frontend_base_url.rstrip("/")

    # =========================================================================
    # PUBLIC (anonymous) OPERATIONS
    # =========================================================================

    async def resolve(self, db: AsyncSession, token: str) -> ResolvedToken:
        """Return the tenant/table a token belongs to, or raise NotFoundError."""
        result = await db.execute(
            select(QRCode.user_id, QRCode.table_number).where(
                QRCode.token == token,
                QRCode.is_active.is_(True),
            )
        )
        row = result.first()
        if row is None:
            raise NotFoundError(TOKEN_NOT_FOUND)
        return ResolvedToken(token=token, tenant_id=row.user_id, table_number=row.table_number)

    async def record_scan(self, db: AsyncSession, token: str) -> ScanResult:
        """
        Count one scan.

        The increment is a single UPDATE so concurrent scans never
        overwrite each other.
        """
        result = await db.execute(
            update(QRCode)
            .where(QRCode.token == token, QRCode.is_active.is_(True))
            .values(scans=QRCode.scans + 1, last_scanned_at=utcnow())
            .returning(QRCode.url, QRCode.table_number)
        )
        row = result.first()
        if row is None:
            await db.rollback()
            raise NotFoundError(TOKEN_NOT_FOUND)

        await db.commit()
        return ScanResult(url=row.url, table_number=row.table_number)

    # =========================================================================
    # TENANT OPERATIONS
    # =========================================================================

    async def issue(
        self,
        db: AsyncSession,
        tenant_id: str,
        name: str,
        qr_type: QRType = QRType.GLOBAL,
        table_number: Optional[str] = None,
        restaurant_name: Optional[str] = None,
        frontend_base_url: Optional[str] = None,
        style: QRStyle = QRStyle(),
    ) -> QRCode:
        """Create a new token; table tokens are unique per tenant."""
        if qr_type == QRType.TABLE and table_number:
            existing = await db.execute(
                select(QRCode.id).where(
                    QRCode.user_id == tenant_id,
                    QRCode.type == QRType.TABLE,
                    QRCode.table_number == table_number,
                    QRCode.is_active.is_(True),
                )
            )
            if existing.first() is not None:
                raise ConflictError(f"QR code for Table {table_number} already exists")

        token = str(uuid.uuid4())
        base = (frontend_base_url or self.frontend_base_url).rstrip("/")
        url = f"{base}/m/{restaurant_slug(restaurant_name)}/q/{token}"

        qr_code_data = await asyncio.to_thread(self.renderer.render, url, style)

        qr_code = QRCode(
            user_id=tenant_id,
            name=name,
            type=qr_type,
            table_number=table_number if qr_type == QRType.TABLE else None,
            token=token,
            url=url,
            qr_code_data=qr_code_data,
        )
        db.add(qr_code)
        await db.commit()
        await db.refresh(qr_code)

        logger.info(f"QR code {qr_code.id} issued for tenant {tenant_id} (type={qr_type.value})")
        return qr_code

    async def list_for_tenant(self, db: AsyncSession, tenant_id: str) -> list[QRCode]:
        result = await db.execute(
            select(QRCode)
            .where(QRCode.user_id == tenant_id, QRCode.is_active.is_(True))
            .order_by(QRCode.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_for_tenant(self, db: AsyncSession, qr_id: str, tenant_id: str) -> QRCode:
        qr_code = await db.get(QRCode, qr_id)
        if qr_code is None:
            raise NotFoundError("QR Code not found")
        if qr_code.user_id != tenant_id:
            raise ForbiddenError("Not authorized to access this QR Code")
        return qr_code

    async def delete(self, db: AsyncSession, qr_id: str, tenant_id: str) -> None:
        """Hard delete; orders keep their token and table snapshot."""
        qr_code = await self.get_for_tenant(db, qr_id, tenant_id)
        await db.delete(qr_code)
        await db.commit()
        logger.info(f"QR code {qr_id} deleted by tenant {tenant_id}")

    async def scan_totals(self, db: AsyncSession, tenant_id: str) -> ScanTotals:
        result = await db.execute(
            select(func.count(QRCode.id), func.coalesce(func.sum(QRCode.scans), 0)).where(
                QRCode.user_id == tenant_id,
                QRCode.is_active.is_(True),
            )
        )
        total_codes, total_scans = result.one()
        return ScanTotals(total_codes=int(total_codes), total_scans=int(total_scans))
