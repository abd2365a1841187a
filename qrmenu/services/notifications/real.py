"""
Real SMS Service

Production implementation using Twilio. The Twilio SDK is blocking, so
each request runs in a worker thread to keep the event loop free.
"""

import asyncio
import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

from qrmenu.services.notifications.base import (
    BaseSMSService,
    NotificationResult,
    format_phone_number,
)

logger = logging.getLogger(__name__)


class RealSMSService(BaseSMSService):
    """Production SMS gateway backed by Twilio."""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
        default_country_code: str = "+91",
    ):
        self.default_country_code = default_country_code

        if account_sid and auth_token and account_sid.startswith("AC"):
            self.twilio_client = TwilioClient(account_sid, auth_token)
            self.twilio_from_number = from_number
            self._account_sid = account_sid
            logger.info("RealSMSService initialized")
        else:
            self.twilio_client = None
            self.twilio_from_number = None
            self._account_sid = None
            logger.warning("Twilio credentials not configured - SMS disabled")

    @property
    def provider_name(self) -> str:
        return "twilio"

    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Send SMS via Twilio."""
        if not self.twilio_client:
            return NotificationResult(
                success=False,
                error_message="Twilio not configured",
                provider="twilio"
            )

        to_phone = format_phone_number(to_phone, self.default_country_code)

        try:
            result = await asyncio.to_thread(
                self.twilio_client.messages.create,
                body=message,
                from_=self.twilio_from_number,
                to=to_phone,
            )

            logger.info(f"SMS sent to {to_phone}: {result.sid}")

            return NotificationResult(
                success=True,
                message_id=result.sid,
                provider="twilio"
            )

        except TwilioException as e:
            logger.error(f"Twilio error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="twilio"
            )

    async def health_check(self) -> bool:
        """Fetch the account record; any Twilio error counts as unhealthy."""
        if not self.twilio_client:
            return False
        try:
            await asyncio.to_thread(self.twilio_client.api.accounts(self._account_sid).fetch)
            return True
        except TwilioException as e:
            logger.warning(f"Twilio health check failed: {e}")
            return False
