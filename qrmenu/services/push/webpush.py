"""
Real Web Push Service

VAPID-signed delivery through pywebpush. pywebpush performs a blocking
HTTP request, so every send runs in a worker thread.
"""

import asyncio
import json
import logging
from typing import Optional

from pywebpush import WebPushException, webpush

from qrmenu.services.push.base import BasePushService, PushResult

logger = logging.getLogger(__name__)


class WebPushService(BasePushService):
    """Production push service (VAPID)."""

    def __init__(
        self,
        public_key: Optional[str],
        private_key: Optional[str],
        subject: str,
        ttl: int = 60 * 60,
    ):
        self._public_key = public_key or ""
        self._private_key = private_key
        self.subject = subject
        self.ttl = ttl

        if self.enabled:
            logger.info("WebPushService initialized")
        else:
            logger.warning("VAPID keys not configured - web push disabled")

    @property
    def provider_name(self) -> str:
        return "webpush"

    @property
    def public_key(self) -> str:
        return self._public_key

    @property
    def enabled(self) -> bool:
        return bool(self._public_key and self._private_key)

    async def send(self, subscription_info: dict, payload: dict) -> PushResult:
        if not self.enabled:
            return PushResult(success=False, error_message="Web push not configured", provider="webpush")

        try:
            response = await asyncio.to_thread(
                webpush,
                subscription_info=subscription_info,
                data=json.dumps(payload),
                vapid_private_key=self._private_key,
                # pywebpush adds aud/exp to this dict, so never share it
                vapid_claims={"sub": self.subject},
                ttl=self.ttl,
            )
            return PushResult(
                success=True,
                status_code=getattr(response, "status_code", None),
                provider="webpush",
            )

        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.warning(f"Web push failed ({status_code}): {e}")
            return PushResult(
                success=False,
                status_code=status_code,
                error_message=str(e),
                provider="webpush",
            )

    async def health_check(self) -> bool:
        return self.enabled
