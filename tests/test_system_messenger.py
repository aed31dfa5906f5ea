from datetime import UTC, datetime
from uuid import uuid4

import pytest

from beautybook.models.booking import Booking
from beautybook.services.system_messenger import (
    SystemMessenger,
    format_scheduled_date,
    render_status_message,
)
from fakes import InMemoryConversationStore


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


def test_format_scheduled_date_ko():
    assert format_scheduled_date(datetime(2025, 3, 15, 10, 0, tzinfo=UTC), "ko") == "2025년 3월 15일 토요일"


def test_format_scheduled_date_en():
    assert format_scheduled_date(datetime(2025, 3, 15, 10, 0, tzinfo=UTC), "en") == "Saturday, March 15, 2025"


def test_format_scheduled_date_uses_booking_timezone():
    # 20:00 UTC on the 14th is already the 15th in Seoul
    late = datetime(2025, 3, 14, 20, 0, tzinfo=UTC)
    assert format_scheduled_date(late, "en", "Asia/Seoul") == "Saturday, March 15, 2025"
    assert format_scheduled_date(late, "en", "UTC") == "Friday, March 14, 2025"


def test_render_confirmed_message(booking):
    assert render_status_message(booking, "confirmed") == (
        "예약이 확정되었습니다. 예약 번호: BK-20250315100000-AB12, 일정: 2025년 3월 15일 토요일"
    )
    assert render_status_message(booking, "cancelled", "en") == (
        "Booking has been cancelled. Booking number: BK-20250315100000-AB12"
    )


def test_render_unknown_status(booking):
    assert render_status_message(booking, "paid") is None


async def test_post_status_message(booking):
    store = InMemoryConversationStore()
    messenger = SystemMessenger(store)

    message = await messenger.post_status_message(booking, "confirmed")

    assert message is not None
    assert message.sender_role == "system"
    assert message.sender_id is None
    assert message.message_type == "system"
    assert message.booking_id == booking.id

    [conversation] = store.conversations
    assert conversation.unread_count_customer == 1
    assert conversation.unread_count_artist == 1


async def test_messages_reuse_the_active_conversation(booking):
    store = InMemoryConversationStore()
    messenger = SystemMessenger(store)

    await messenger.post_status_message(booking, "pending")
    await messenger.post_status_message(booking, "confirmed")

    assert len(store.conversations) == 1
    assert len(store.messages) == 2
    assert store.conversations[0].unread_count_artist == 2


async def test_missing_template_posts_nothing(booking):
    store = InMemoryConversationStore()

    assert await SystemMessenger(store).post_status_message(booking, "paid") is None
    assert store.messages == []


async def test_store_failure_returns_none(booking, caplog):
    messenger = SystemMessenger(InMemoryConversationStore(fail=True))

    assert await messenger.post_status_message(booking, "confirmed") is None
    assert "Failed to post system message" in caplog.text
