from datetime import UTC, datetime
from uuid import uuid4

import pytest

from beautybook.models.booking import Booking
from beautybook.services.notification_service import (
    TOKEN_CLEANUP_BATCH_SIZE,
    NotificationDispatcher,
    status_message,
)
from fakes import InMemoryNotificationStore, RecordingPushTransport


@pytest.fixture
def booking(customer, artist) -> Booking:
    return Booking(
        id=uuid4(),
        booking_number="BK-20250315100000-AB12",
        customer_id=customer.id,
        artist_id=artist.id,
        status="confirmed",
        scheduled_date=datetime(2025, 3, 15, 10, 0, tzinfo=UTC),
        timezone="Asia/Seoul",
    )


def test_status_message_per_recipient():
    assert status_message("cancelled", "customer") == ("예약이 취소되었습니다", "예약이 취소되었습니다.")
    assert status_message("cancelled", "artist", "en") == ("Booking cancelled", "The customer cancelled the booking.")
    assert status_message("paid", "artist", "en") == ("Payment received", "The customer has paid for the booking.")
    assert status_message("paid", "customer", "en") == (
        "Payment confirmed",
        "Your payment for the booking has been confirmed.",
    )


def test_status_message_never_uses_the_other_partys_text():
    # No artist template for a confirmation; the artist gets the generic text
    assert status_message("confirmed", "artist", "en") == ("Booking status updated", "Current status: confirmed")
    for lang in ("ko", "en"):
        _, artist_body = status_message("paid", "artist", lang)
        assert status_message("paid", "customer", lang)[1] != artist_body


def test_status_message_fallback():
    assert status_message("no_show", "customer", "en") == ("Booking status updated", "Current status: no_show")


def test_unsupported_locale_uses_default():
    assert status_message("confirmed", "customer", "fr")[0] == "예약이 확정되었습니다"


async def test_dispatch_persists_and_pushes(dispatcher, notification_store, device_store, push, customer, booking):
    await device_store.register(customer.id, "ExponentPushToken[a]", "ios")
    await device_store.register(customer.id, "ExponentPushToken[b]", "android")

    await dispatcher.notify_booking_status_changed(booking)

    [notification] = notification_store.notifications
    assert notification.user_id == customer.id
    assert notification.type == "booking_confirmed"
    assert notification.data == {
        "type": "booking_confirmed",
        "bookingId": str(booking.id),
        "bookingNumber": "BK-20250315100000-AB12",
        "status": "confirmed",
    }

    [(tokens, payload)] = push.sent
    assert sorted(tokens) == ["ExponentPushToken[a]", "ExponentPushToken[b]"]
    assert payload.title == "예약이 확정되었습니다"
    assert payload.data == notification.data


async def test_disabled_preference_skips_inbox_and_push(
    dispatcher, preference_service, notification_store, device_store, push, customer, booking
):
    await device_store.register(customer.id, "ExponentPushToken[a]", "ios")
    await preference_service.update_preferences(customer.id, {"booking_confirmed": False})

    await dispatcher.notify_booking_status_changed(booking)

    assert notification_store.notifications == []
    assert push.sent == []


async def test_artist_cancellation_respects_cancelled_preference(
    dispatcher, preference_service, notification_store, customer, booking
):
    await preference_service.update_preferences(customer.id, {"booking_cancelled": False})

    await dispatcher.notify_booking_cancelled_by_artist(booking, "Illness")

    assert notification_store.notifications == []


async def test_unmapped_event_types_are_always_sent(dispatcher, notification_store, customer):
    await dispatcher.dispatch(customer.id, "system_announcement", data={"title": "Hello", "body": "World"})

    [notification] = notification_store.notifications
    assert (notification.title, notification.body) == ("Hello", "World")
    assert notification.data == {"type": "system_announcement"}


async def test_inbox_failure_still_pushes(preference_service, device_store, runner, customer, booking, caplog):
    push = RecordingPushTransport()
    dispatcher = NotificationDispatcher(
        preferences=preference_service,
        notifications=InMemoryNotificationStore(fail=True),
        device_tokens=device_store,
        push=push,
        runner=runner,
    )
    await device_store.register(customer.id, "ExponentPushToken[a]", "ios")

    await dispatcher.notify_booking_status_changed(booking)

    assert len(push.sent) == 1
    assert "Failed to persist notification" in caplog.text


async def test_invalid_tokens_are_deactivated(
    preference_service, notification_store, device_store, runner, customer, booking
):
    tokens = [f"ExponentPushToken[{i}]" for i in range(TOKEN_CLEANUP_BATCH_SIZE + 2)]
    for token in tokens:
        await device_store.register(customer.id, token, "ios")

    dispatcher = NotificationDispatcher(
        preferences=preference_service,
        notifications=notification_store,
        device_tokens=device_store,
        push=RecordingPushTransport(invalid_tokens=tokens[1:]),
        runner=runner,
    )
    await dispatcher.notify_booking_status_changed(booking)
    await runner.drain()

    assert [len(batch) for batch in device_store.deactivate_calls] == [TOKEN_CLEANUP_BATCH_SIZE, 1]
    assert await device_store.find_active_tokens(customer.id) == [tokens[0]]


async def test_no_devices_means_no_push(dispatcher, notification_store, push, customer, booking):
    await dispatcher.notify_booking_status_changed(booking)

    assert len(notification_store.notifications) == 1
    assert push.sent == []


async def test_customer_cancellation_goes_to_artist(dispatcher, notification_store, artist, booking):
    booking.status = "cancelled"
    booking.cancelled_by = "customer"

    await dispatcher.notify_booking_status_changed(booking)

    [notification] = notification_store.notifications
    assert notification.user_id == artist.id
    assert notification.body == "고객이 예약을 취소했습니다."


async def test_explicit_recipient_and_locale(dispatcher, notification_store, artist, booking):
    booking.status = "paid"

    await dispatcher.notify_booking_status_changed(booking, recipient_id=artist.id, locale="en")

    [notification] = notification_store.notifications
    assert notification.user_id == artist.id
    assert notification.title == "Payment received"


async def test_booking_created_goes_to_artist(dispatcher, notification_store, artist, booking):
    booking.status = "pending"

    await dispatcher.notify_booking_created(booking, locale="en")

    [notification] = notification_store.notifications
    assert notification.user_id == artist.id
    assert notification.title == "New booking request"


async def test_cancelled_by_artist_without_reason(dispatcher, notification_store, customer, booking):
    await dispatcher.notify_booking_cancelled_by_artist(booking, None, locale="en")

    [notification] = notification_store.notifications
    assert notification.user_id == customer.id
    assert notification.body == "Reason: -"
