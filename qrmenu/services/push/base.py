"""
Web Push Service Abstract Base Class

Defines the interface for delivering one browser push message.
Supports both Mock (development) and Real (production) implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

# Push services answer 404/410 once a subscription has expired
GONE_STATUS_CODES = frozenset({404, 410})


@dataclass
class PushResult:
    """Result from delivering to a single subscription."""
    success: bool
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    provider: str = "unknown"

    @property
    def gone(self) -> bool:
        return self.status_code in GONE_STATUS_CODES


class BasePushService(ABC):
    """Abstract base class for web push delivery."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @property
    @abstractmethod
    def public_key(self) -> str:
        """VAPID public key browsers subscribe with (empty when disabled)."""
        pass

    @abstractmethod
    async def send(self, subscription_info: dict, payload: dict) -> PushResult:
        """Deliver ``payload`` to one subscription. Must not raise for delivery failures."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass
