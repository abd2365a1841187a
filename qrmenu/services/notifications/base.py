"""
SMS Gateway Abstract Base Class

Defines the interface for sending SMS notifications.
Supports both Mock (development) and Real (production) implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def format_phone_number(phone: str, default_country_code: str = "+91") -> str:
    """
    Normalize a phone number to E.164-ish form.

    Numbers already starting with ``+`` are kept; anything else gets the
    default country code prefixed after stripping spaces and dashes.
    """
    cleaned = "".join(ch for ch in phone.strip() if ch.isdigit() or ch == "+")
    if cleaned.startswith("+"):
        return cleaned
    return f"{default_country_code}{cleaned}"


class BaseSMSService(ABC):
    """Abstract base class for SMS gateways."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_sms(
        self,
        to_phone: str,
        message: str,
    ) -> NotificationResult:
        """Send an SMS message. Must not raise for delivery failures."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass
