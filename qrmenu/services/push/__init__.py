"""
Web Push Service Factory

Returns Mock or Real push service based on ENV_MODE.
"""

import logging
from functools import lru_cache

from qrmenu.core.config import get_settings
from qrmenu.services.push.base import GONE_STATUS_CODES, BasePushService, PushResult
from qrmenu.services.push.mock import MockPushService
from qrmenu.services.push.registry import PushSubscriptionRegistry
from qrmenu.services.push.webpush import WebPushService

logger = logging.getLogger(__name__)


@lru_cache()
def get_push_service() -> BasePushService:
    """Get the configured push service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Push Service: Using MockPushService (development mode)")
        return MockPushService()
    else:
        logger.info(f"Push Service: Using WebPushService ({settings.env_mode.value} mode)")
        return WebPushService(
            public_key=settings.vapid_public_key,
            private_key=settings.vapid_private_key,
            subject=settings.vapid_subject,
        )


def reset_push_service() -> None:
    """Clear the cached service instance."""
    get_push_service.cache_clear()


__all__ = [
    "get_push_service",
    "reset_push_service",
    "BasePushService",
    "PushResult",
    "PushSubscriptionRegistry",
    "GONE_STATUS_CODES",
]
