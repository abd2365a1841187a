"""
Push subscription registry.

Subscriptions are keyed by endpoint; subscribing again from the same
browser updates the keys and targeting instead of adding a row.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.core.exceptions import ValidationError
from qrmenu.models import PushSubscription

logger = logging.getLogger(__name__)


class PushSubscriptionRegistry:

    async def upsert(
        self,
        db: AsyncSession,
        endpoint: str,
        p256dh: str,
        auth: str,
        user_id: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> PushSubscription:
        if not endpoint or not p256dh or not auth:
            raise ValidationError("Invalid subscription")

        subscription = await self._by_endpoint(db, endpoint)
        if subscription is None:
            subscription = PushSubscription(endpoint=endpoint)
            db.add(subscription)

        subscription.p256dh = p256dh
        subscription.auth = auth
        subscription.user_id = user_id
        subscription.phone = phone

        try:
            await db.commit()
        except IntegrityError:
            # Lost an insert race for the same endpoint; update the winner
            await db.rollback()
            subscription = await self._by_endpoint(db, endpoint)
            subscription.p256dh = p256dh
            subscription.auth = auth
            subscription.user_id = user_id
            subscription.phone = phone
            await db.commit()

        await db.refresh(subscription)
        logger.info(f"Push subscription {subscription.id} saved (user={user_id}, phone={phone})")
        return subscription

    async def for_user(self, db: AsyncSession, user_id: str) -> list[PushSubscription]:
        if not user_id:
            return []
        result = await db.execute(select(PushSubscription).where(PushSubscription.user_id == user_id))
        return list(result.scalars().all())

    async def for_phone(self, db: AsyncSession, phone: str) -> list[PushSubscription]:
        if not phone:
            return []
        result = await db.execute(select(PushSubscription).where(PushSubscription.phone == phone))
        return list(result.scalars().all())

    async def remove(self, db: AsyncSession, subscription_id: str) -> None:
        await db.execute(delete(PushSubscription).where(PushSubscription.id == subscription_id))
        await db.commit()

    async def _by_endpoint(self, db: AsyncSession, endpoint: str) -> Optional[PushSubscription]:
        result = await db.execute(select(PushSubscription).where(PushSubscription.endpoint == endpoint))
        return result.scalar_one_or_none()
