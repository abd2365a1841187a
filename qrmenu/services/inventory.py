"""
Inventory

Stock items per tenant, with a low-stock flag derived from ``min_level``.
"""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.exceptions import ConflictError, NotFoundError, ValidationError
from qrmenu.models import InventoryItem

logger = logging.getLogger(__name__)

FIELDS = ("name", "quantity", "unit", "min_level", "cost_per_unit")


class InventoryService:

    async def list_for_tenant(self, db: AsyncSession, tenant_id: str) -> list[InventoryItem]:
        result = await db.execute(
            select(InventoryItem)
            .where(InventoryItem.owner_id == tenant_id)
            .order_by(InventoryItem.name)
        )
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, tenant_id: str, values: dict[str, Any]) -> InventoryItem:
        name = (values.get("name") or "").strip()
        if not name:
            raise ValidationError("Name is required")
        await self._ensure_unique_name(db, tenant_id, name)

        item = InventoryItem(owner_id=tenant_id, **self._clean(values))
        item.name = name
        db.add(item)
        await db.commit()
        await db.refresh(item)
        logger.info(f"Inventory item {item.id} ({item.name}) added for tenant {tenant_id}")
        return item

    async def update(
        self, db: AsyncSession, item_id: str, tenant_id: str, values: dict[str, Any]
    ) -> InventoryItem:
        item = await self._load(db, item_id, tenant_id)
        clean = self._clean(values)
        if "name" in clean:
            clean["name"] = clean["name"].strip()
            if clean["name"].lower() != item.name.lower():
                await self._ensure_unique_name(db, tenant_id, clean["name"])

        for field, value in clean.items():
            setattr(item, field, value)
        await db.commit()
        await db.refresh(item)

        if item.is_low_stock:
            logger.warning(f"Low stock: {item.name} ({item.quantity} {item.unit.value}) for tenant {tenant_id}")
        return item

    async def delete(self, db: AsyncSession, item_id: str, tenant_id: str) -> None:
        item = await self._load(db, item_id, tenant_id)
        await db.delete(item)
        await db.commit()

    async def _load(self, db: AsyncSession, item_id: str, tenant_id: str) -> InventoryItem:
        # Scoped lookup: another tenant's item is simply not found
        result = await db.execute(
            select(InventoryItem).where(InventoryItem.id == item_id, InventoryItem.owner_id == tenant_id)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError("Item not found")
        return item

    async def _ensure_unique_name(self, db: AsyncSession, tenant_id: str, name: str) -> None:
        existing = await db.scalar(
            select(InventoryItem.id).where(
                InventoryItem.owner_id == tenant_id,
                func.lower(InventoryItem.name) == name.lower(),
            )
        )
        if existing is not None:
            raise ConflictError("Item with this name already exists", detail={"existingItemId": existing})

    @staticmethod
    def _clean(values: dict[str, Any]) -> dict[str, Any]:
        clean = {k: v for k, v in values.items() if k in FIELDS and v is not None}
        if clean.get("quantity", 0) < 0:
            raise ValidationError("Quantity cannot be negative")
        return clean
