"""
Menu Catalog

Per-tenant menu items: owner CRUD, availability toggling and the public
menu a QR code opens. Menu rows are never referenced by orders (orders
keep their own snapshots), so deletes here are hard deletes.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from qrmenu.models import MenuItem, User, UserRole
from qrmenu.services.qr_registry import QRTokenRegistry

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "description",
    "price",
    "currency",
    "category",
    "image",
    "is_available",
    "is_veg",
    "spice_level",
    "preparation_time",
)


@dataclass
class PublicMenu:
    restaurant: User
    table_number: Optional[str]
    items: list[MenuItem]

    @property
    def categories(self) -> "OrderedDict[str, list[MenuItem]]":
        grouped: OrderedDict[str, list[MenuItem]] = OrderedDict()
        for item in self.items:
            grouped.setdefault(item.category, []).append(item)
        return grouped


def _normalize(values: dict[str, Any], default_currency: str) -> dict[str, Any]:
    clean = {k: v for k, v in values.items() if k in EDITABLE_FIELDS and v is not None}
    if "price" in clean and clean["price"] < 0:
        raise ValidationError("Price cannot be negative")
    if "category" in clean:
        clean["category"] = clean["category"].strip().lower()
    if "currency" in clean:
        clean["currency"] = (clean["currency"] or default_currency).upper()
    if "name" in clean:
        clean["name"] = clean["name"].strip()
    return clean


class MenuCatalog:

    def __init__(self, registry: QRTokenRegistry, default_currency: str = "INR"):
        self.registry = registry
        self.default_currency = default_currency

    # =========================================================================
    # OWNER OPERATIONS
    # =========================================================================

    async def list_for_tenant(self, db: AsyncSession, tenant_id: str) -> list[MenuItem]:
        result = await db.execute(
            select(MenuItem)
            .where(MenuItem.user_id == tenant_id, MenuItem.is_active.is_(True))
            .order_by(MenuItem.category, MenuItem.name)
        )
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, tenant_id: str, values: dict[str, Any]) -> MenuItem:
        clean = _normalize(values, self.default_currency)
        if not clean.get("name") or "price" not in clean or not clean.get("category"):
            raise ValidationError("Name, price and category are required")
        clean.setdefault("currency", self.default_currency)

        item = MenuItem(user_id=tenant_id, **clean)
        db.add(item)
        await db.commit()
        await db.refresh(item)
        logger.info(f"Menu item {item.id} ({item.name}) added for tenant {tenant_id}")
        return item

    async def update(
        self, db: AsyncSession, item_id: str, tenant_id: str, values: dict[str, Any]
    ) -> MenuItem:
        item = await self._load_owned(db, item_id, tenant_id, action="update")
        for field, value in _normalize(values, self.default_currency).items():
            setattr(item, field, value)
        await db.commit()
        await db.refresh(item)
        return item

    async def set_availability(
        self, db: AsyncSession, item_id: str, tenant_id: str, is_available: bool
    ) -> MenuItem:
        item = await self._load_owned(db, item_id, tenant_id, action="update")
        item.is_available = is_available
        await db.commit()
        await db.refresh(item)
        logger.info(f"Menu item {item_id} availability -> {is_available}")
        return item

    async def delete(self, db: AsyncSession, item_id: str, tenant_id: str) -> None:
        item = await self._load_owned(db, item_id, tenant_id, action="delete")
        await db.delete(item)
        await db.commit()
        logger.info(f"Menu item {item_id} deleted by tenant {tenant_id}")

    async def delete_all(self, db: AsyncSession, tenant_id: str) -> int:
        result = await db.execute(delete(MenuItem).where(MenuItem.user_id == tenant_id))
        await db.commit()
        logger.info(f"Deleted {result.rowcount} menu items for tenant {tenant_id}")
        return result.rowcount or 0

    async def bulk_upsert(
        self, db: AsyncSession, tenant_id: str, rows: Iterable[dict[str, Any]]
    ) -> list[MenuItem]:
        """
        Rows with an ``id`` update that item (if the tenant owns it);
        rows without one create a new item. Used to confirm an
        extracted menu in one request.
        """
        rows = list(rows)
        if not rows:
            raise ValidationError("Please provide items array")

        saved = []
        for row in rows:
            clean = _normalize(row, self.default_currency)
            item_id = row.get("id")
            if item_id:
                item = await db.get(MenuItem, item_id)
                if item is None or item.user_id != tenant_id:
                    continue
                for field, value in clean.items():
                    setattr(item, field, value)
            else:
                if not clean.get("name") or "price" not in clean or not clean.get("category"):
                    raise ValidationError("Name, price and category are required")
                clean.setdefault("currency", self.default_currency)
                item = MenuItem(user_id=tenant_id, **clean)
                db.add(item)
            saved.append(item)

        await db.commit()
        for item in saved:
            await db.refresh(item)
        return saved

    # =========================================================================
    # PUBLIC MENU
    # =========================================================================

    async def public_menu(
        self, db: AsyncSession, slug: str, token: Optional[str] = None
    ) -> PublicMenu:
        """
        Resolve the restaurant by QR token when one is given (this also
        yields the table), otherwise by matching the slug against the
        restaurant name. Only active, available items are returned.
        """
        table_number = None
        if token:
            resolved = await self.registry.resolve(db, token)
            restaurant = await db.get(User, resolved.tenant_id)
            table_number = resolved.table_number
        else:
            restaurant_name = slug.replace("-", " ").strip().lower()
            result = await db.execute(
                select(User).where(
                    User.role == UserRole.OWNER,
                    func.lower(User.restaurant_name) == restaurant_name,
                )
            )
            restaurant = result.scalars().first()

        if restaurant is None:
            raise NotFoundError("Restaurant not found")

        result = await db.execute(
            select(MenuItem)
            .where(
                MenuItem.user_id == restaurant.id,
                MenuItem.is_active.is_(True),
                MenuItem.is_available.is_(True),
            )
            .order_by(MenuItem.category, MenuItem.name)
        )
        return PublicMenu(
            restaurant=restaurant,
            table_number=table_number,
            items=list(result.scalars().all()),
        )

    async def _load_owned(self, db: AsyncSession, item_id: str, tenant_id: str, action: str) -> MenuItem:
        item = await db.get(MenuItem, item_id)
        if item is None:
            raise NotFoundError("Menu item not found")
        if item.user_id != tenant_id:
            raise ForbiddenError(f"Not authorized to {action} this item")
        return item
