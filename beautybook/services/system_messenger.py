"""System chat messages announcing booking status changes."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from beautybook.config import settings
from beautybook.models.booking import Booking
from beautybook.models.message import Message
from beautybook.stores.base import ConversationStore

logger = logging.getLogger(__name__)

BOOKING_SYSTEM_MESSAGES: dict[str, dict[str, str]] = {
    "ko": {
        "pending": "예약이 생성되었습니다. 예약 번호: {bookingNumber}, 일정: {scheduledDate}",
        "confirmed": "예약이 확정되었습니다. 예약 번호: {bookingNumber}, 일정: {scheduledDate}",
        "declined": "예약이 거절되었습니다. 예약 번호: {bookingNumber}",
        "in_progress": "서비스가 시작되었습니다. 예약 번호: {bookingNumber}",
        "completed": "서비스가 완료되었습니다. 예약 번호: {bookingNumber}",
        "cancelled": "예약이 취소되었습니다. 예약 번호: {bookingNumber}",
        "no_show": "고객이 나타나지 않았습니다. 예약 번호: {bookingNumber}",
    },
    "en": {
        "pending": "Booking has been created. Booking number: {bookingNumber}, Schedule: {scheduledDate}",
        "confirmed": "Booking has been confirmed. Booking number: {bookingNumber}, Schedule: {scheduledDate}",
        "declined": "Booking has been declined. Booking number: {bookingNumber}",
        "in_progress": "Service has started. Booking number: {bookingNumber}",
        "completed": "Service has been completed. Booking number: {bookingNumber}",
        "cancelled": "Booking has been cancelled. Booking number: {bookingNumber}",
        "no_show": "Customer did not show up. Booking number: {bookingNumber}",
    },
}

KO_WEEKDAYS = ("월요일", "화요일", "수요일", "목요일", "금요일", "토요일", "일요일")
EN_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
EN_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def format_scheduled_date(value: datetime, locale: str, tz_name: str | None = None) -> str:
    """Long-form date in the booking's timezone.

    ko: 2025년 3월 15일 토요일
    en: Saturday, March 15, 2025
    """
    if value.tzinfo is not None:
        try:
            value = value.astimezone(ZoneInfo(tz_name or settings.default_timezone))
        except ZoneInfoNotFoundError:
            logger.warning(f"Unknown timezone '{tz_name}', formatting date as stored")

    if locale == "ko":
        return f"{value.year}년 {value.month}월 {value.day}일 {KO_WEEKDAYS[value.weekday()]}"
    return f"{EN_WEEKDAYS[value.weekday()]}, {EN_MONTHS[value.month - 1]} {value.day}, {value.year}"


def render_status_message(booking: Booking, status: str, locale: str | None = None) -> str | None:
    """Localized system message text, or None if the status has no template."""
    lang = locale if locale in BOOKING_SYSTEM_MESSAGES else settings.default_locale
    template = BOOKING_SYSTEM_MESSAGES.get(lang, BOOKING_SYSTEM_MESSAGES["ko"]).get(status)
    if template is None:
        return None

    text = template.replace("{bookingNumber}", booking.booking_number)
    if "{scheduledDate}" in text:
        text = text.replace(
            "{scheduledDate}", format_scheduled_date(booking.scheduled_date, lang, booking.timezone)
        )
    return text


class SystemMessenger:
    """Posts booking status updates into the customer/artist conversation."""

    def __init__(self, conversations: ConversationStore) -> None:
        self.conversations = conversations

    async def post_status_message(
        self, booking: Booking, status: str, locale: str | None = None
    ) -> Message | None:
        """Post the status message for a booking. Never raises.

        Returns:
            Message | None: The posted message, or None when there is no
            template for the status or posting failed
        """
        content = render_status_message(booking, status, locale)
        if content is None:
            logger.debug(f"No system message template for status '{status}'")
            return None

        try:
            conversation = await self.conversations.get_or_create(
                booking.customer_id, booking.artist_id, booking.id
            )
            return await self.conversations.post_message(
                conversation_id=conversation.id,
                sender_role="system",
                content=content,
                booking_id=booking.id,
            )
        except Exception:
            logger.exception(
                f"Failed to post system message (booking_id={booking.id}, status={status})"
            )
            return None
