"""Booking lifecycle orchestration.

Each operation follows the same shape:
1. Load the booking and check legality and ownership (nothing is written
   if either fails)
2. Apply the change with a conditional status write
3. Fire side effects (notification, system chat message) as detached
   tasks; their failures are logged and never reach the caller

Payment authorization at creation is the one side effect that is awaited
and whose failure propagates.
"""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from beautybook.core.background_tasks import BackgroundTaskRunner, background_runner
from beautybook.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PaymentError,
    ValidationError,
)
from beautybook.domain.actors import Actor, AdminActor, ArtistActor, CustomerActor, actor_role
from beautybook.domain.booking_state import (
    BookingStatus,
    PaymentStatus,
    assert_booking_transition,
    build_history_entry,
)
from beautybook.domain.pricing import calculate_booking_amounts, total_duration_minutes
from beautybook.gateways.base import PaymentGateway
from beautybook.models.booking import Booking
from beautybook.schemas.booking import BookingCreate
from beautybook.services.notification_service import NotificationDispatcher
from beautybook.services.system_messenger import SystemMessenger
from beautybook.stores.base import BookingStore

logger = logging.getLogger(__name__)

PENDING = BookingStatus.PENDING.value
CONFIRMED = BookingStatus.CONFIRMED.value
DECLINED = BookingStatus.DECLINED.value
PAID = BookingStatus.PAID.value
IN_PROGRESS = BookingStatus.IN_PROGRESS.value
COMPLETED = BookingStatus.COMPLETED.value
CANCELLED = BookingStatus.CANCELLED.value


def is_owner(actor: Actor, booking: Booking) -> bool:
    """Customers and artists own their side of a booking; admins own all."""
    match actor:
        case CustomerActor(id=actor_id):
            return booking.customer_id == actor_id
        case ArtistActor(id=actor_id):
            return booking.artist_id == actor_id
        case AdminActor():
            return True


class BookingOrchestrator:
    """Coordinates booking state changes with their side effects."""

    def __init__(
        self,
        bookings: BookingStore,
        notifier: NotificationDispatcher,
        messenger: SystemMessenger,
        payments: PaymentGateway,
        runner: BackgroundTaskRunner = background_runner,
    ) -> None:
        self.bookings = bookings
        self.notifier = notifier
        self.messenger = messenger
        self.payments = payments
        self.runner = runner

    # ==================== HELPERS ====================

    async def _get_or_404(self, booking_id: UUID) -> Booking:
        booking = await self.bookings.find_by_id(booking_id)
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def _transition(
        self,
        booking: Booking,
        new_status: str,
        extra: dict[str, Any] | None = None,
        now: datetime | None = None,
    ) -> Booking:
        assert_booking_transition(booking.status, new_status)
        updated = await self.bookings.conditional_update_status(
            booking.id,
            booking.status,
            new_status,
            build_history_entry(new_status, now),
            extra,
        )
        logger.info(f"Booking {updated.booking_number}: {booking.status} → {new_status}")
        return updated

    def _spawn_side_effects(self, booking: Booking, recipient_id: UUID | None = None) -> None:
        """Notify the recipient and post the status message, both detached."""
        context = {"booking_id": str(booking.id), "status": booking.status}
        self.runner.spawn(
            self.notifier.notify_booking_status_changed(booking, recipient_id),
            "notify_status_changed",
            **context,
        )
        self.runner.spawn(
            self.messenger.post_status_message(booking, booking.status),
            "post_system_message",
            **context,
        )

    # ==================== CREATE ====================

    async def create_booking(self, customer_id: UUID, payload: BookingCreate) -> Booking:
        """Create a pending booking and place the payment hold.

        Args:
            customer_id: Booking customer
            payload: Validated booking request

        Returns:
            Booking: The created booking

        Raises:
            ValidationError: If customer and artist are the same user or no
                services were selected
            PaymentError: If the payment hold is declined
        """
        if customer_id == payload.artist_id:
            raise ValidationError("You cannot book yourself")
        if not payload.services:
            raise ValidationError("At least one service is required")

        services = [s.model_dump() for s in payload.services]
        amounts = calculate_booking_amounts(services)
        now = datetime.now(UTC)

        booking = await self.bookings.insert(
            {
                "customer_id": customer_id,
                "artist_id": payload.artist_id,
                "service_type": payload.service_type,
                "occasion": payload.occasion,
                "services": services,
                "total_duration_minutes": total_duration_minutes(services),
                "scheduled_date": payload.scheduled_date,
                "scheduled_start_time": payload.scheduled_start_time,
                "scheduled_end_time": payload.scheduled_end_time,
                "timezone": payload.timezone,
                "service_location": payload.location.model_dump(),
                "special_requests": payload.special_requests,
                "status": PENDING,
                "status_history": [build_history_entry(PENDING, now)],
                "payment_status": PaymentStatus.PENDING.value,
                "total_amount": amounts["total"],
                "breakdown": amounts,
            }
        )
        logger.info(
            f"Booking {booking.booking_number} created: customer={customer_id}, "
            f"artist={payload.artist_id}, total={amounts['total']}"
        )

        authorization = await self.payments.authorize(booking)
        if not authorization.success:
            await self.bookings.update_payment_status(booking.id, PaymentStatus.FAILED.value)
            logger.warning(
                f"Payment hold declined for booking {booking.booking_number}: {authorization.error_message}"
            )
            raise PaymentError(authorization.error_message or "Payment authorization failed")
        if authorization.authorization_id:
            booking = await self.bookings.record_payment_authorization(
                booking.id, authorization.authorization_id
            )

        await self.notifier.notify_booking_created(booking)
        self.runner.spawn(
            self.messenger.post_status_message(booking, PENDING),
            "post_system_message",
            booking_id=str(booking.id),
            status=PENDING,
        )
        return booking

    # ==================== ARTIST / CUSTOMER ACTIONS ====================

    async def accept_booking(self, booking_id: UUID, artist_id: UUID) -> Booking:
        """Artist accepts a pending booking."""
        booking = await self._get_or_404(booking_id)
        if booking.status != PENDING:
            raise ConflictError("Only pending bookings can be accepted")
        if booking.artist_id != artist_id:
            raise AuthorizationError("Only the booked artist can accept this booking")

        now = datetime.now(UTC)
        updated = await self._transition(booking, CONFIRMED, {"confirmed_at": now}, now)
        self._spawn_side_effects(updated, updated.customer_id)
        return updated

    async def decline_booking(self, booking_id: UUID, artist_id: UUID, reason: str | None = None) -> Booking:
        """Artist declines a pending booking."""
        booking = await self._get_or_404(booking_id)
        if booking.status != PENDING:
            raise ConflictError("Only pending bookings can be declined")
        if booking.artist_id != artist_id:
            raise AuthorizationError("Only the booked artist can decline this booking")

        updated = await self._transition(booking, DECLINED, {"decline_reason": reason})
        self._spawn_side_effects(updated, updated.customer_id)
        return updated

    async def cancel_pending_booking(
        self, booking_id: UUID, customer_id: UUID, reason: str | None = None
    ) -> Booking:
        """Customer withdraws a booking the artist has not answered yet."""
        booking = await self._get_or_404(booking_id)
        if booking.status != PENDING:
            raise ConflictError("Only pending bookings can be cancelled")
        if booking.customer_id != customer_id:
            raise AuthorizationError("Only the booking customer can cancel this booking")

        now = datetime.now(UTC)
        updated = await self._transition(
            booking,
            CANCELLED,
            {"cancelled_by": "customer", "cancelled_at": now, "cancellation_reason": reason},
            now,
        )
        self._spawn_side_effects(updated, updated.artist_id)
        return updated

    async def complete_booking(self, booking_id: UUID, artist_id: UUID) -> Booking:
        """Artist marks a paid, in-progress booking as completed."""
        booking = await self._get_or_404(booking_id)
        if booking.artist_id != artist_id:
            raise AuthorizationError("Only the booked artist can complete this booking")
        return await self._complete(booking, artist_id)

    async def _complete(self, booking: Booking, completed_by: UUID) -> Booking:
        if booking.status != IN_PROGRESS or booking.payment_status != PaymentStatus.PAID.value:
            raise ConflictError("Only paid bookings in progress can be completed")

        now = datetime.now(UTC)
        updated = await self._transition(
            booking, COMPLETED, {"completed_at": now, "completed_by": completed_by}, now
        )
        self._spawn_side_effects(updated, updated.customer_id)
        return updated

    # ==================== VALIDATED STATUS CHANGE ====================

    async def update_booking_status_validated(
        self,
        booking_id: UUID,
        new_status: str,
        actor: Actor,
        reason: str | None = None,
    ) -> Booking:
        """Move a booking to any legal next status on behalf of an actor.

        Transitions with a dedicated operation (accept, decline, customer
        cancellation of a pending booking, completion) delegate to it when
        the matching owner asks, so their preconditions apply unchanged.

        Raises:
            NotFoundError: If the booking does not exist
            ConflictError: If the transition is not in the table
            AuthorizationError: If the actor may not perform the transition
        """
        booking = await self._get_or_404(booking_id)
        current = booking.status
        assert_booking_transition(current, new_status)

        if not is_owner(actor, booking):
            raise AuthorizationError("You are not a party to this booking")

        now = datetime.now(UTC)
        extra: dict[str, Any] = {}

        match (current, new_status, actor):
            # Dedicated operations for the owning party
            case (BookingStatus.PENDING, BookingStatus.CANCELLED, CustomerActor(id=customer_id)):
                return await self.cancel_pending_booking(booking_id, customer_id, reason)
            case (BookingStatus.PENDING, BookingStatus.CONFIRMED, ArtistActor(id=artist_id)):
                return await self.accept_booking(booking_id, artist_id)
            case (BookingStatus.PENDING, BookingStatus.DECLINED, ArtistActor(id=artist_id)):
                return await self.decline_booking(booking_id, artist_id, reason)
            case (_, BookingStatus.COMPLETED, ArtistActor(id=artist_id)):
                return await self.complete_booking(booking_id, artist_id)

            # Admin overrides of the dedicated operations
            case (BookingStatus.PENDING, BookingStatus.CANCELLED, AdminActor()):
                extra = {"cancelled_by": "admin", "cancelled_at": now, "cancellation_reason": reason}
            case (BookingStatus.PENDING, BookingStatus.CONFIRMED, AdminActor()):
                extra = {"confirmed_at": now}
            case (BookingStatus.PENDING, BookingStatus.DECLINED, AdminActor()):
                extra = {"decline_reason": reason}
            case (_, BookingStatus.COMPLETED, AdminActor(id=admin_id)):
                return await self._complete(booking, admin_id)

            # Service start: the artist, or an admin on their behalf
            case (_, BookingStatus.IN_PROGRESS, ArtistActor() | AdminActor()):
                pass

            # Payment settlement is never user-driven
            case (BookingStatus.CONFIRMED, BookingStatus.PAID, AdminActor()):
                extra = {"payment_status": PaymentStatus.PAID.value}

            # Cancelling a confirmed, paid or started booking: any party
            case (_, BookingStatus.CANCELLED, _) if current != PENDING:
                extra = {
                    "cancelled_by": actor_role(actor),
                    "cancelled_at": now,
                    "cancellation_reason": reason,
                }

            case _:
                raise AuthorizationError(
                    f"A {actor_role(actor)} cannot change a booking from {current} to {new_status}"
                )

        updated = await self._transition(booking, new_status, extra, now)

        if new_status == CANCELLED and isinstance(actor, ArtistActor):
            self.runner.spawn(
                self.notifier.notify_booking_cancelled_by_artist(updated, reason),
                "notify_cancelled_by_artist",
                booking_id=str(updated.id),
            )
            self.runner.spawn(
                self.messenger.post_status_message(updated, new_status),
                "post_system_message",
                booking_id=str(updated.id),
                status=new_status,
            )
        elif isinstance(actor, AdminActor):
            # Neither party asked for an admin change, so both hear about it
            self._spawn_side_effects(updated, updated.customer_id)
            self.runner.spawn(
                self.notifier.notify_booking_status_changed(updated, updated.artist_id),
                "notify_status_changed",
                booking_id=str(updated.id),
                status=new_status,
            )
        else:
            recipient = updated.artist_id if isinstance(actor, CustomerActor) else updated.customer_id
            self._spawn_side_effects(updated, recipient)
        return updated

    # ==================== PAYMENT SETTLEMENT ====================

    async def mark_booking_paid(self, booking_id: UUID) -> Booking:
        """Record a settled payment.

        A confirmed booking also moves to ``paid``; bookings already in
        progress only get their payment status updated.
        """
        booking = await self._get_or_404(booking_id)
        if booking.status in (DECLINED, CANCELLED):
            raise ConflictError(f"Cannot record payment for a {booking.status} booking")

        if booking.payment_status != PaymentStatus.PAID.value:
            booking = await self.bookings.update_payment_status(booking.id, PaymentStatus.PAID.value)
            logger.info(f"Booking {booking.booking_number} payment recorded")

        if booking.status == CONFIRMED:
            booking = await self._transition(booking, PAID)
            self._spawn_side_effects(booking, booking.artist_id)
        return booking

    # ==================== READS ====================

    async def get_booking_for_actor(self, booking_id: UUID, actor: Actor) -> Booking:
        booking = await self._get_or_404(booking_id)
        if not is_owner(actor, booking):
            raise AuthorizationError("You don't have access to this booking")
        return booking

    async def list_customer_bookings(
        self, customer_id: UUID, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[Booking]:
        return await self.bookings.find_by_customer(customer_id, status, limit, offset)

    async def list_artist_bookings(
        self, artist_id: UUID, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[Booking]:
        return await self.bookings.find_by_artist(artist_id, status, limit, offset)
