"""
Mock SMS Service

Simulates SMS sending for development.
No actual messages are sent - just logged and kept in ``outbox``.
"""

import asyncio
import logging
import random
import uuid

from qrmenu.services.notifications.base import (
    BaseSMSService,
    NotificationResult,
    format_phone_number,
)

logger = logging.getLogger(__name__)


class MockSMSService(BaseSMSService):
    """Mock SMS gateway for development and tests."""

    def __init__(
        self,
        failure_rate: float = 0.0,
        latency: tuple[float, float] = (0.0, 0.0),
        default_country_code: str = "+91",
    ):
        self.failure_rate = failure_rate
        self.latency = latency
        self.default_country_code = default_country_code
        self.outbox: list[tuple[str, str]] = []
        logger.info(f"MockSMSService initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "mock"

    async def _simulate_latency(self) -> None:
        """Simulate network latency."""
        low, high = self.latency
        if high > 0:
            await asyncio.sleep(random.uniform(low, high))

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Simulate sending SMS."""
        await self._simulate_latency()
        to_phone = format_phone_number(to_phone, self.default_country_code)

        if self._should_fail():
            logger.warning(f"Mock SMS failed (simulated) to {to_phone}")
            return NotificationResult(
                success=False,
                error_message="Simulated SMS failure",
                provider="mock"
            )

        message_id = f"sms_mock_{uuid.uuid4().hex[:12]}"
        self.outbox.append((to_phone, message))
        logger.info(f"Mock SMS sent to {to_phone}: {message[:50]}... (ID: {message_id})")

        return NotificationResult(
            success=True,
            message_id=message_id,
            provider="mock"
        )

    async def health_check(self) -> bool:
        """Mock always returns healthy."""
        return True
