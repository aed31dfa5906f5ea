"""Notification dispatch for booking events.

Every notification goes through the same three steps:
- preference check (disabled types are dropped entirely)
- inbox persistence (failures are logged, push still goes out)
- push to every active device of the recipient

Dispatch never raises. Callers treat it as a best-effort side effect.
"""

import logging
from typing import Any
from uuid import UUID

from beautybook.config import settings
from beautybook.core.background_tasks import BackgroundTaskRunner, background_runner
from beautybook.gateways.push import PushPayload, PushTransport
from beautybook.models.booking import Booking
from beautybook.services.preference_service import NotificationPreferenceService
from beautybook.stores.base import DeviceTokenStore, NotificationStore

logger = logging.getLogger(__name__)

SUPPORTED_LOCALES = ("ko", "en")

# Invalid tokens are deactivated in small chunks
TOKEN_CLEANUP_BATCH_SIZE = 10

# status -> {"customer": (title, body), "artist": (title, body)}
STATUS_MESSAGES: dict[str, dict[str, dict[str, tuple[str, str]]]] = {
    "ko": {
        "confirmed": {"customer": ("예약이 확정되었습니다", "아티스트가 예약을 수락했습니다.")},
        "declined": {
            "customer": (
                "예약이 거절되었습니다",
                "아티스트가 예약을 거절했습니다. 다른 아티스트를 찾아보세요.",
            ),
        },
        "cancelled": {
            "customer": ("예약이 취소되었습니다", "예약이 취소되었습니다."),
            "artist": ("예약이 취소되었습니다", "고객이 예약을 취소했습니다."),
        },
        "cancelled_by_admin": {
            "customer": ("예약이 취소되었습니다", "관리자가 예약을 취소했습니다."),
            "artist": ("예약이 취소되었습니다", "관리자가 예약을 취소했습니다."),
        },
        "paid": {
            "customer": ("결제가 확인되었습니다", "예약 결제가 확인되었습니다."),
            "artist": ("결제가 완료되었습니다", "고객이 예약 결제를 완료했습니다."),
        },
        "in_progress": {"customer": ("서비스가 시작되었습니다", "아티스트가 서비스를 시작했습니다.")},
        "completed": {"customer": ("서비스가 완료되었습니다", "리뷰를 남겨주세요!")},
    },
    "en": {
        "confirmed": {"customer": ("Booking confirmed", "The artist accepted your booking.")},
        "declined": {
            "customer": (
                "Booking declined",
                "The artist declined your booking. Try booking another artist.",
            ),
        },
        "cancelled": {
            "customer": ("Booking cancelled", "Your booking has been cancelled."),
            "artist": ("Booking cancelled", "The customer cancelled the booking."),
        },
        "cancelled_by_admin": {
            "customer": ("Booking cancelled", "An administrator cancelled the booking."),
            "artist": ("Booking cancelled", "An administrator cancelled the booking."),
        },
        "paid": {
            "customer": ("Payment confirmed", "Your payment for the booking has been confirmed."),
            "artist": ("Payment received", "The customer has paid for the booking."),
        },
        "in_progress": {"customer": ("Service started", "The artist has started the service.")},
        "completed": {"customer": ("Service completed", "Please leave a review!")},
    },
}

FALLBACK_MESSAGES: dict[str, tuple[str, str]] = {
    "ko": ("예약 상태가 업데이트됐어요", "현재 상태: {status}"),
    "en": ("Booking status updated", "Current status: {status}"),
}

EVENT_MESSAGES: dict[str, dict[str, tuple[str, str]]] = {
    "ko": {
        "booking_created": ("새 예약 요청", "새로운 예약 요청이 도착했습니다. 확인해 주세요."),
        "booking_cancelled_by_artist": ("아티스트가 예약을 취소했습니다", "취소 사유: {reason}"),
    },
    "en": {
        "booking_created": ("New booking request", "A new booking request has arrived. Please review it."),
        "booking_cancelled_by_artist": ("The artist cancelled your booking", "Reason: {reason}"),
    },
}


def resolve_locale(locale: str | None) -> str:
    if locale in SUPPORTED_LOCALES:
        return locale
    return settings.default_locale if settings.default_locale in SUPPORTED_LOCALES else "ko"


def status_message(status: str, recipient: str, locale: str | None = None) -> tuple[str, str]:
    """Title and body announcing a booking status to the customer or artist."""
    lang = resolve_locale(locale)
    # Each recipient only ever sees text written for them
    message = STATUS_MESSAGES[lang].get(status, {}).get(recipient)
    if message:
        return message

    title, body = FALLBACK_MESSAGES[lang]
    return title, body.format(status=status)


class NotificationDispatcher:
    """Sends inbox and push notifications to one user at a time."""

    def __init__(
        self,
        preferences: NotificationPreferenceService,
        notifications: NotificationStore,
        device_tokens: DeviceTokenStore,
        push: PushTransport,
        runner: BackgroundTaskRunner = background_runner,
    ) -> None:
        self.preferences = preferences
        self.notifications = notifications
        self.device_tokens = device_tokens
        self.push = push
        self.runner = runner

    def _render(
        self,
        user_id: UUID,
        event_type: str,
        booking: Booking | None,
        data: dict[str, Any],
        locale: str,
    ) -> tuple[str, str]:
        event_message = EVENT_MESSAGES[locale].get(event_type)
        if event_message:
            title, body = event_message
            return title, body.format(reason=data.get("reason") or "-")

        if "title" in data and "body" in data:
            return str(data["title"]), str(data["body"])

        status = data.get("status") or (booking.status if booking else None)
        if status is None and event_type.startswith("booking_"):
            status = event_type.removeprefix("booking_")
        if status == "cancelled" and booking is not None and booking.cancelled_by == "admin":
            status = "cancelled_by_admin"

        recipient = "artist" if booking is not None and user_id == booking.artist_id else "customer"
        return status_message(status or event_type, recipient, locale)

    async def dispatch(
        self,
        user_id: UUID,
        event_type: str,
        booking: Booking | None = None,
        data: dict[str, Any] | None = None,
        locale: str | None = None,
    ) -> None:
        """Notify a single user about an event.

        Args:
            user_id: Recipient
            event_type: Notification type, also the preference lookup key
            booking: Related booking, if any
            data: Extra payload; ``title``/``body`` override the rendered text
            locale: Message language (defaults to settings.default_locale)
        """
        data = dict(data or {})
        context = {"user_id": str(user_id), "type": event_type}
        if booking is not None:
            context["booking_id"] = str(booking.id)

        try:
            enabled = await self.preferences.is_enabled(user_id, event_type)
        except Exception:
            logger.exception(f"Preference lookup failed, sending anyway ({context})")
            enabled = True

        if not enabled:
            logger.info(f"Notification disabled by user preference ({context})")
            return

        lang = resolve_locale(locale)
        title, body = self._render(user_id, event_type, booking, data, lang)

        payload_data: dict[str, Any] = {"type": event_type}
        if booking is not None:
            payload_data.update(
                bookingId=str(booking.id),
                bookingNumber=booking.booking_number,
                status=booking.status,
            )
        payload_data.update({k: v for k, v in data.items() if k not in ("title", "body")})

        try:
            await self.notifications.create(
                user_id=user_id,
                notification_type=event_type,
                title=title,
                body=body,
                data=payload_data,
            )
        except Exception:
            logger.exception(f"Failed to persist notification ({context})")

        await self._send_push(user_id, PushPayload(title=title, body=body, data=payload_data), context)

    async def _send_push(self, user_id: UUID, payload: PushPayload, context: dict[str, str]) -> None:
        try:
            tokens = await self.device_tokens.find_active_tokens(user_id)
            if not tokens:
                logger.debug(f"No active devices for push ({context})")
                return

            result = await self.push.send(tokens, payload)
        except Exception:
            logger.exception(f"Failed to send push notification ({context})")
            return

        if result.invalid_tokens:
            self.runner.spawn(
                self._deactivate_tokens(result.invalid_tokens),
                "deactivate_invalid_tokens",
                **context,
            )

    async def _deactivate_tokens(self, tokens: list[str]) -> None:
        for start in range(0, len(tokens), TOKEN_CLEANUP_BATCH_SIZE):
            batch = tokens[start : start + TOKEN_CLEANUP_BATCH_SIZE]
            count = await self.device_tokens.deactivate(batch)
            logger.info(f"Deactivated {count} invalid device token(s)")

    # ==================== BOOKING EVENTS ====================

    async def notify_booking_created(self, booking: Booking, locale: str | None = None) -> None:
        """Tell the artist a new booking request arrived."""
        logger.info(f"Booking created notification (booking_id={booking.id})")
        await self.dispatch(booking.artist_id, "booking_created", booking=booking, locale=locale)

    async def notify_booking_status_changed(
        self,
        booking: Booking,
        recipient_id: UUID | None = None,
        locale: str | None = None,
    ) -> None:
        """Announce the booking's current status.

        Goes to the customer unless ``recipient_id`` says otherwise, except
        that a customer's own cancellation is announced to the artist.
        """
        logger.info(f"Booking status update notification (booking_id={booking.id}, status={booking.status})")

        if recipient_id is None:
            if booking.status == "cancelled" and booking.cancelled_by == "customer":
                recipient_id = booking.artist_id
            else:
                recipient_id = booking.customer_id

        await self.dispatch(recipient_id, f"booking_{booking.status}", booking=booking, locale=locale)

    async def notify_booking_cancelled_by_artist(
        self, booking: Booking, reason: str | None, locale: str | None = None
    ) -> None:
        """Tell the customer the artist cancelled, with the reason."""
        logger.info(f"Booking cancelled by artist notification (booking_id={booking.id})")
        await self.dispatch(
            booking.customer_id,
            "booking_cancelled_by_artist",
            booking=booking,
            data={"reason": reason} if reason else None,
            locale=locale,
        )
