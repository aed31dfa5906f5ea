"""In-memory stand-ins for the storage interfaces and external gateways."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

from beautybook.core.exceptions import ConflictError, NotFoundError
from beautybook.gateways.base import AuthorizationResult, GatewayType, PaymentGateway
from beautybook.gateways.push import PushPayload, PushTransport, SendResult
from beautybook.models import (
    Booking,
    Conversation,
    DeviceToken,
    Message,
    Notification,
    NotificationPreference,
    User,
)
from beautybook.schemas.booking import BookingCreate
from beautybook.services.preference_service import DEFAULT_PREFERENCES
from beautybook.stores.base import (
    BookingStore,
    ConversationStore,
    DeviceTokenStore,
    NotificationStore,
    PreferenceStore,
)
from beautybook.utils.booking_number import generate_booking_number


class InMemoryBookingStore(BookingStore):
    def __init__(self) -> None:
        self.bookings: dict[UUID, Booking] = {}
        self.conditional_updates: list[tuple[UUID, str, str]] = []

    async def insert(self, values: dict[str, Any]) -> Booking:
        now = datetime.now(UTC)
        booking = Booking(
            id=uuid4(),
            booking_number=generate_booking_number(now),
            created_at=now,
            updated_at=now,
            **values,
        )
        self.bookings[booking.id] = booking
        return booking

    async def find_by_id(self, booking_id: UUID) -> Booking | None:
        return self.bookings.get(booking_id)

    async def conditional_update_status(
        self,
        booking_id: UUID,
        expected_status: str,
        new_status: str,
        history_entry: dict[str, str],
        extra: dict[str, Any] | None = None,
    ) -> Booking:
        self.conditional_updates.append((booking_id, expected_status, new_status))
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking", str(booking_id))
        if booking.status != expected_status:
            raise ConflictError(
                f"Booking status changed concurrently: expected {expected_status}, found {booking.status}"
            )

        booking.status = new_status
        booking.status_history = [*booking.status_history, history_entry]
        for key, value in (extra or {}).items():
            setattr(booking, key, value)
        booking.updated_at = datetime.now(UTC)
        return booking

    def _filter(self, attr: str, value: UUID, status: str | None, limit: int, offset: int) -> list[Booking]:
        matches = [
            b for b in self.bookings.values()
            if getattr(b, attr) == value and (status is None or b.status == status)
        ]
        matches.sort(key=lambda b: b.scheduled_date, reverse=True)
        return matches[offset : offset + limit]

    async def find_by_customer(
        self, customer_id: UUID, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[Booking]:
        return self._filter("customer_id", customer_id, status, limit, offset)

    async def find_by_artist(
        self, artist_id: UUID, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[Booking]:
        return self._filter("artist_id", artist_id, status, limit, offset)

    async def update_payment_status(self, booking_id: UUID, payment_status: str) -> Booking:
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking", str(booking_id))
        booking.payment_status = payment_status
        return booking

    async def record_payment_authorization(self, booking_id: UUID, authorization_id: str) -> Booking:
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking", str(booking_id))
        booking.payment_authorization_id = authorization_id
        return booking


class InMemoryConversationStore(ConversationStore):
    def __init__(self, fail: bool = False) -> None:
        self.conversations: list[Conversation] = []
        self.messages: list[Message] = []
        self.fail = fail

    async def get_or_create(
        self, customer_id: UUID, artist_id: UUID, booking_id: UUID | None = None
    ) -> Conversation:
        if self.fail:
            raise RuntimeError("conversation store unavailable")

        for conversation in self.conversations:
            if (
                conversation.customer_id == customer_id
                and conversation.artist_id == artist_id
                and conversation.status == "active"
            ):
                return conversation

        conversation = Conversation(
            id=uuid4(),
            customer_id=customer_id,
            artist_id=artist_id,
            booking_id=booking_id,
            status="active",
            unread_count_customer=0,
            unread_count_artist=0,
            last_message_at=datetime.now(UTC),
        )
        self.conversations.append(conversation)
        return conversation

    async def post_message(
        self,
        conversation_id: UUID,
        sender_role: str,
        content: str,
        booking_id: UUID | None = None,
        sender_id: UUID | None = None,
        message_type: str = "system",
    ) -> Message:
        message = Message(
            id=uuid4(),
            conversation_id=conversation_id,
            sender_role=sender_role,
            sender_id=sender_id,
            content=content,
            booking_id=booking_id,
            message_type=message_type,
            sent_at=datetime.now(UTC),
        )
        self.messages.append(message)

        conversation = next(c for c in self.conversations if c.id == conversation_id)
        conversation.last_message_at = message.sent_at
        if sender_role != "customer":
            conversation.unread_count_customer += 1
        if sender_role != "artist":
            conversation.unread_count_artist += 1
        return message


class InMemoryPreferenceStore(PreferenceStore):
    def __init__(self) -> None:
        self.preferences: dict[UUID, NotificationPreference] = {}
        self.create_calls = 0

    async def get(self, user_id: UUID) -> NotificationPreference | None:
        return self.preferences.get(user_id)

    async def create(self, user_id: UUID) -> NotificationPreference:
        self.create_calls += 1
        if user_id not in self.preferences:
            self.preferences[user_id] = NotificationPreference(
                id=uuid4(), user_id=user_id, **DEFAULT_PREFERENCES
            )
        return self.preferences[user_id]

    async def upsert(self, user_id: UUID, values: dict[str, bool]) -> NotificationPreference:
        preference = await self.create(user_id)
        for key, value in values.items():
            setattr(preference, key, value)
        return preference


class InMemoryNotificationStore(NotificationStore):
    def __init__(self, fail: bool = False) -> None:
        self.notifications: list[Notification] = []
        self.fail = fail

    async def create(
        self,
        user_id: UUID,
        notification_type: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        if self.fail:
            raise RuntimeError("database is down")

        notification = Notification(
            id=uuid4(),
            user_id=user_id,
            type=notification_type,
            title=title,
            body=body,
            data=data,
            read_at=None,
            created_at=datetime.now(UTC),
        )
        self.notifications.append(notification)
        return notification

    def _for_user(self, user_id: UUID, unread_only: bool) -> list[Notification]:
        return [
            n for n in self.notifications
            if n.user_id == user_id and (not unread_only or n.read_at is None)
        ]

    async def list_for_user(
        self, user_id: UUID, unread_only: bool = False, limit: int = 20, offset: int = 0
    ) -> list[Notification]:
        items = sorted(self._for_user(user_id, unread_only), key=lambda n: n.created_at, reverse=True)
        return items[offset : offset + limit]

    async def count_for_user(self, user_id: UUID, unread_only: bool = False) -> int:
        return len(self._for_user(user_id, unread_only))

    async def unread_count(self, user_id: UUID) -> int:
        return len(self._for_user(user_id, unread_only=True))

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id and notification.user_id == user_id:
                if notification.read_at is None:
                    notification.read_at = datetime.now(UTC)
                return notification
        return None

    async def mark_all_read(self, user_id: UUID) -> int:
        unread = self._for_user(user_id, unread_only=True)
        for notification in unread:
            notification.read_at = datetime.now(UTC)
        return len(unread)


def last_seen(device: DeviceToken) -> datetime:
    return device.last_used_at or device.created_at or datetime.now(UTC)


class InMemoryDeviceTokenStore(DeviceTokenStore):
    def __init__(self) -> None:
        self.devices: dict[str, DeviceToken] = {}
        self.deactivate_calls: list[list[str]] = []

    async def register(
        self,
        user_id: UUID,
        token: str,
        platform: str,
        device_id: str | None = None,
        app_version: str | None = None,
    ) -> DeviceToken:
        device = self.devices.get(token) or DeviceToken(id=uuid4(), token=token)
        device.user_id = user_id
        device.platform = platform
        device.device_id = device_id
        device.app_version = app_version
        device.is_active = True
        device.last_used_at = datetime.now(UTC)
        self.devices[token] = device
        return device

    async def find_active_tokens(self, user_id: UUID) -> list[str]:
        return [d.token for d in self.devices.values() if d.user_id == user_id and d.is_active]

    async def deactivate(self, tokens: list[str]) -> int:
        self.deactivate_calls.append(list(tokens))
        count = 0
        for token in tokens:
            device = self.devices.get(token)
            if device and device.is_active:
                device.is_active = False
                count += 1
        return count

    async def remove(self, user_id: UUID, token: str) -> bool:
        device = self.devices.get(token)
        if device is None or device.user_id != user_id:
            return False
        del self.devices[token]
        return True

    async def deactivate_stale(self, older_than: datetime) -> int:
        count = 0
        for device in self.devices.values():
            if device.is_active and last_seen(device) < older_than:
                device.is_active = False
                count += 1
        return count

    async def delete_stale(self, older_than: datetime) -> int:
        stale = [token for token, device in self.devices.items() if last_seen(device) < older_than]
        for token in stale:
            del self.devices[token]
        return len(stale)


class RecordingPushTransport(PushTransport):
    def __init__(self, invalid_tokens: list[str] | None = None) -> None:
        self.sent: list[tuple[list[str], PushPayload]] = []
        self.invalid_tokens = invalid_tokens or []

    async def send(self, tokens: list[str], payload: PushPayload) -> SendResult:
        self.sent.append((list(tokens), payload))
        invalid = [t for t in tokens if t in self.invalid_tokens]
        return SendResult(
            success_count=len(tokens) - len(invalid),
            failure_count=len(invalid),
            invalid_tokens=invalid,
        )


class StubPaymentGateway(PaymentGateway):
    def __init__(self, approve: bool = True) -> None:
        self.approve = approve
        self.authorized: list[UUID] = []

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.MANUAL

    async def authorize(self, booking: Booking) -> AuthorizationResult:
        self.authorized.append(booking.id)
        if not self.approve:
            return AuthorizationResult(success=False, error_message="Card declined")
        return AuthorizationResult(success=True, authorization_id=f"auth_{booking.booking_number}")


def make_user(*roles: str) -> User:
    return User(id=uuid4(), name="Test User", roles=list(roles), is_active=True)


def booking_payload(artist_id: UUID, prices=(100000,), **overrides: Any) -> BookingCreate:
    start = datetime(2025, 3, 15, 10, 0, tzinfo=UTC)
    data = {
        "artist_id": artist_id,
        "service_type": "makeup",
        "occasion": "wedding",
        "scheduled_date": start,
        "scheduled_start_time": start,
        "scheduled_end_time": start + timedelta(hours=2),
        "services": [
            {"id": f"svc-{i}", "name": f"Service {i}", "duration_minutes": 60, "price": price}
            for i, price in enumerate(prices)
        ],
        "location": {"address": "서울특별시 강남구 테헤란로 1"},
    }
    data.update(overrides)
    return BookingCreate(**data)
