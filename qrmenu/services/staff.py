"""
Staff directory.

Staff are User rows with ``role=staff`` linked to one owner through
``owner_id``. Only owners manage them.
"""

import asyncio
import logging
from typing import Any, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from qrmenu.core.security import get_password_hash
from qrmenu.models import StaffRole, User, UserRole

logger = logging.getLogger(__name__)


class StaffDirectory:

    async def list_for_owner(self, db: AsyncSession, owner_id: str) -> list[User]:
        result = await db.execute(
            select(User)
            .where(User.role == UserRole.STAFF, User.owner_id == owner_id)
            .order_by(User.created_at.desc())
        )
        return list(result.scalars().all())

    async def create(
        self,
        db: AsyncSession,
        owner: User,
        name: str,
        pin: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        permissions: Optional[list[str]] = None,
        staff_role: StaffRole = StaffRole.WAITER,
    ) -> User:
        if not email and not phone:
            raise ValidationError("Either email or phone number is required")
        if not pin or len(pin) != 6 or not pin.isdigit():
            raise ValidationError("PIN must be a 6-digit number")

        email = email.strip().lower() if email else None
        await self._ensure_unique(db, email=email, phone=phone)

        staff = User(
            name=name.strip(),
            email=email,
            phone=phone,
            password_hash=await asyncio.to_thread(get_password_hash, pin),
            restaurant_name=owner.restaurant_name,
            role=UserRole.STAFF,
            owner_id=owner.id,
            staff_role=staff_role,
            permissions=list(permissions or []),
        )
        db.add(staff)
        await db.commit()
        await db.refresh(staff)

        logger.info(f"Staff {staff.id} ({staff_role.value}) created for owner {owner.id}")
        return staff

    async def update(
        self, db: AsyncSession, staff_id: str, owner_id: str, values: dict[str, Any]
    ) -> User:
        staff = await self._load_owned(db, staff_id, owner_id, action="modify")

        if "email" in values and values["email"]:
            values["email"] = values["email"].strip().lower()
        await self._ensure_unique(
            db,
            email=values.get("email"),
            phone=values.get("phone"),
            exclude_id=staff.id,
        )

        for field in ("name", "email", "phone", "is_active", "permissions", "staff_role"):
            if field in values and values[field] is not None:
                setattr(staff, field, values[field])

        await db.commit()
        await db.refresh(staff)
        return staff

    async def delete(self, db: AsyncSession, staff_id: str, owner_id: str) -> None:
        staff = await self._load_owned(db, staff_id, owner_id, action="delete")
        await db.delete(staff)
        await db.commit()
        logger.info(f"Staff {staff_id} deleted by owner {owner_id}")

    async def _load_owned(self, db: AsyncSession, staff_id: str, owner_id: str, action: str) -> User:
        staff = await db.get(User, staff_id)
        if staff is None or staff.role != UserRole.STAFF:
            raise NotFoundError("Staff user not found")
        if staff.owner_id != owner_id:
            raise ForbiddenError(f"Not authorized to {action} this staff user")
        return staff

    async def _ensure_unique(
        self,
        db: AsyncSession,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> None:
        conditions = []
        if email:
            conditions.append(User.email == email)
        if phone:
            conditions.append(User.phone == phone)
        if not conditions:
            return

        query = select(User.email, User.phone).where(or_(*conditions))
        if exclude_id:
            query = query.where(User.id != exclude_id)
        existing = (await db.execute(query)).first()
        if existing is None:
            return
        if email and existing.email == email:
            raise ConflictError("A user with this email already exists")
        raise ConflictError("A user with this phone already exists")
