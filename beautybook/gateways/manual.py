"""Manual payment gateway adapter for bank transfers."""

from beautybook.config import settings
from beautybook.gateways.base import AuthorizationResult, GatewayType, PaymentGateway
from beautybook.models.booking import Booking


class ManualGateway(PaymentGateway):
    """Manual payment gateway for bank transfers.

    Every hold is accepted; an admin marks the booking paid once the
    transfer arrives.
    """

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.MANUAL

    async def authorize(self, booking: Booking) -> AuthorizationResult:
        return AuthorizationResult(
            success=True,
            authorization_id=f"manual_{booking.booking_number}",
            raw_response={
                "type": "bank_transfer",
                "status": "pending_verification",
                "amount": booking.total_amount,
                "currency": settings.currency,
            },
        )
