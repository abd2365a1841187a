"""
SMS Service Factory

Returns Mock or Real SMS service based on ENV_MODE.
"""

import logging
from functools import lru_cache

from qrmenu.core.config import get_settings
from qrmenu.services.notifications.base import (
    BaseSMSService,
    NotificationResult,
    format_phone_number,
)
from qrmenu.services.notifications.mock import MockSMSService
from qrmenu.services.notifications.real import RealSMSService

logger = logging.getLogger(__name__)


@lru_cache()
def get_sms_service() -> BaseSMSService:
    """Get the configured SMS service."""
    settings = get_settings()

    if settings.is_development:
        logger.info("SMS Service: Using MockSMSService (development mode)")
        return MockSMSService(
            failure_rate=0.05,
            latency=(0.1, 0.3),
            default_country_code=settings.sms_default_country_code,
        )
    else:
        logger.info(f"SMS Service: Using RealSMSService ({settings.env_mode.value} mode)")
        return RealSMSService(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
            default_country_code=settings.sms_default_country_code,
        )


def reset_sms_service() -> None:
    """Clear the cached service instance."""
    get_sms_service.cache_clear()


__all__ = [
    "get_sms_service",
    "reset_sms_service",
    "BaseSMSService",
    "NotificationResult",
    "format_phone_number",
]
