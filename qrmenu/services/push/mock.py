"""
Mock Web Push Service

Logs deliveries instead of contacting a push service. Endpoints listed
in ``gone_endpoints`` answer 410 so expiry handling can be exercised.
"""

import logging
from typing import Iterable, Optional

from qrmenu.services.push.base import BasePushService, PushResult

logger = logging.getLogger(__name__)


class MockPushService(BasePushService):
    """Mock push service for development and tests."""

    def __init__(self, gone_endpoints: Optional[Iterable[str]] = None):
        self.gone_endpoints = set(gone_endpoints or ())
        self.outbox: list[tuple[str, dict]] = []
        logger.info("MockPushService initialized")

    @property
    def provider_name(self) -> str:
        return "mock"

    @property
    def public_key(self) -> str:
        return "mock-vapid-public-key"

    async def send(self, subscription_info: dict, payload: dict) -> PushResult:
        endpoint = subscription_info["endpoint"]

        if endpoint in self.gone_endpoints:
            logger.info(f"Mock push endpoint gone: {endpoint[:60]}")
            return PushResult(success=False, status_code=410, error_message="Gone", provider="mock")

        self.outbox.append((endpoint, payload))
        logger.info(f"Mock push to {endpoint[:60]}: {payload.get('title')}")
        return PushResult(success=True, status_code=201, provider="mock")

    async def health_check(self) -> bool:
        return True
