"""Base payment gateway interface.

All gateway adapters must implement this interface.
Business logic should NOT live in adapters - only gateway communication.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from beautybook.models.booking import Booking


class GatewayType(str, Enum):
    """Supported payment gateways."""

    MANUAL = "manual"


@dataclass
class AuthorizationResult:
    """Result of a payment hold request."""

    success: bool
    authorization_id: str | None = None
    error_message: str | None = None
    raw_response: dict | None = None


class PaymentGateway(ABC):
    """Abstract base class for payment gateways."""

    @property
    @abstractmethod
    def gateway_type(self) -> GatewayType:
        """Return the gateway type."""

    @abstractmethod
    async def authorize(self, booking: "Booking") -> AuthorizationResult:
        """Place a hold for the booking's total amount.

        Args:
            booking: Freshly created booking (total_amount in whole KRW)

        Returns:
            AuthorizationResult: success=False when the hold is declined
        """
