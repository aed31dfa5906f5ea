"""PostgreSQL implementations of the storage interfaces.

``SqlBookingStore`` works inside the caller's session and commits its own
writes, so detached side effects that open their own sessions always see
the new booking row. The remaining stores open a short-lived session per
call through ``get_db_context``; they are used from background tasks that
must not share the request's transaction.
"""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import JSONB, insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from beautybook.config import settings
from beautybook.core.exceptions import ConflictError, NotFoundError
from beautybook.database import get_db_context
from beautybook.models import (
    Booking,
    Conversation,
    DeviceToken,
    Message,
    Notification,
    NotificationPreference,
)
from beautybook.stores.base import (
    BookingStore,
    ConversationStore,
    DeviceTokenStore,
    NotificationStore,
    PreferenceStore,
)
from beautybook.utils.booking_number import generate_booking_number

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class SqlBookingStore(BookingStore):
    """Booking persistence bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert(self, values: dict[str, Any]) -> Booking:
        max_attempts = settings.booking_number_max_attempts

        for attempt in range(1, max_attempts + 1):
            booking = Booking(**values, booking_number=generate_booking_number())
            try:
                async with self.session.begin_nested():
                    self.session.add(booking)
            except IntegrityError as e:
                if "booking_number" not in str(e.orig):
                    raise
                logger.warning(
                    f"Booking number {booking.booking_number} collided "
                    f"(attempt {attempt}/{max_attempts})"
                )
                continue

            await self.session.commit()
            return booking

        raise ConflictError("Could not allocate a unique booking number, please retry")

    async def find_by_id(self, booking_id: UUID) -> Booking | None:
        return await self.session.get(Booking, booking_id)

    async def conditional_update_status(
        self,
        booking_id: UUID,
        expected_status: str,
        new_status: str,
        history_entry: dict[str, str],
        extra: dict[str, Any] | None = None,
    ) -> Booking:
        appended = func.jsonb_build_array(
            func.jsonb_build_object(
                "status", history_entry["status"],
                "timestamp", history_entry["timestamp"],
            )
        )

        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == expected_status)
            .values(
                status=new_status,
                status_history=Booking.status_history.op("||", return_type=JSONB)(appended),
                updated_at=func.now(),
                **(extra or {}),
            )
            .returning(Booking)
            .execution_options(populate_existing=True, synchronize_session=False)
        )

        result = await self.session.execute(stmt)
        booking = result.scalar_one_or_none()

        if booking is None:
            current = await self.session.get(Booking, booking_id, populate_existing=True)
            if current is None:
                raise NotFoundError("Booking", str(booking_id))
            logger.info(
                f"Booking {booking_id} transition {expected_status} → {new_status} lost the race "
                f"(now {current.status})"
            )
            raise ConflictError(
                f"Booking status changed concurrently: expected {expected_status}, found {current.status}"
            )

        await self.session.commit()
        return booking

    async def _find_by(
        self, column: Any, value: UUID, status: str | None, limit: int, offset: int
    ) -> list[Booking]:
        query = select(Booking).where(column == value)
        if status:
            query = query.where(Booking.status == status)
        query = query.order_by(Booking.scheduled_date.desc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_by_customer(
        self, customer_id: UUID, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[Booking]:
        return await self._find_by(Booking.customer_id, customer_id, status, limit, offset)

    async def find_by_artist(
        self, artist_id: UUID, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[Booking]:
        return await self._find_by(Booking.artist_id, artist_id, status, limit, offset)

    async def update_payment_status(self, booking_id: UUID, payment_status: str) -> Booking:
        return await self._update_payment(booking_id, payment_status=payment_status)

    async def record_payment_authorization(self, booking_id: UUID, authorization_id: str) -> Booking:
        return await self._update_payment(booking_id, payment_authorization_id=authorization_id)

    async def _update_payment(self, booking_id: UUID, **values: Any) -> Booking:
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id)
            .values(**values, updated_at=func.now())
            .returning(Booking)
            .execution_options(populate_existing=True, synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError("Booking", str(booking_id))

        await self.session.commit()
        return booking


class SqlConversationStore(ConversationStore):
    """Conversations, one session per call."""

    def __init__(self, session_factory: SessionFactory = get_db_context) -> None:
        self.session_factory = session_factory

    @staticmethod
    async def _find_active(session: AsyncSession, customer_id: UUID, artist_id: UUID) -> Conversation | None:
        result = await session.execute(
            select(Conversation).where(
                Conversation.customer_id == customer_id,
                Conversation.artist_id == artist_id,
                Conversation.status == "active",
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create(
        self, customer_id: UUID, artist_id: UUID, booking_id: UUID | None = None
    ) -> Conversation:
        async with self.session_factory() as session:
            conversation = await self._find_active(session, customer_id, artist_id)
            if conversation:
                return conversation

            # A concurrent creator wins silently; we then read its row
            await session.execute(
                insert(Conversation)
                .values(
                    customer_id=customer_id,
                    artist_id=artist_id,
                    booking_id=booking_id,
                    status="active",
                )
                .on_conflict_do_nothing(index_elements=["customer_id", "artist_id", "status"])
            )
            conversation = await self._find_active(session, customer_id, artist_id)
            if conversation is None:
                raise NotFoundError("Conversation")
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
        async with self.session_factory() as session:
            message = Message(
                conversation_id=conversation_id,
                sender_id=sender_id,
                sender_role=sender_role,
                message_type=message_type,
                content=content,
                booking_id=booking_id,
            )
            session.add(message)

            # The sender never has unread messages of their own
            counters: dict[str, Any] = {}
            if sender_role != "customer":
                counters["unread_count_customer"] = Conversation.unread_count_customer + 1
            if sender_role != "artist":
                counters["unread_count_artist"] = Conversation.unread_count_artist + 1

            await session.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(last_message_at=func.now(), **counters)
            )
            await session.flush()
            return message


class SqlPreferenceStore(PreferenceStore):
    """Notification preferences, one session per call."""

    def __init__(self, session_factory: SessionFactory = get_db_context) -> None:
        self.session_factory = session_factory

    @staticmethod
    async def _get(session: AsyncSession, user_id: UUID) -> NotificationPreference | None:
        result = await session.execute(
            select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get(self, user_id: UUID) -> NotificationPreference | None:
        async with self.session_factory() as session:
            return await self._get(session, user_id)

    async def create(self, user_id: UUID) -> NotificationPreference:
        async with self.session_factory() as session:
            await session.execute(
                insert(NotificationPreference)
                .values(user_id=user_id)
                .on_conflict_do_nothing(index_elements=["user_id"])
            )
            preference = await self._get(session, user_id)
            if preference is None:
                raise NotFoundError("Notification preferences", str(user_id))
            return preference

    async def upsert(self, user_id: UUID, values: dict[str, bool]) -> NotificationPreference:
        async with self.session_factory() as session:
            stmt = insert(NotificationPreference).values(user_id=user_id, **values)
            if values:
                stmt = stmt.on_conflict_do_update(
                    index_elements=["user_id"],
                    set_={**values, "updated_at": func.now()},
                )
            else:
                stmt = stmt.on_conflict_do_nothing(index_elements=["user_id"])
            await session.execute(stmt)

            preference = await self._get(session, user_id)
            if preference is None:
                raise NotFoundError("Notification preferences", str(user_id))
            return preference


class SqlNotificationStore(NotificationStore):
    """Notification inbox, one session per call."""

    def __init__(self, session_factory: SessionFactory = get_db_context) -> None:
        self.session_factory = session_factory

    async def create(
        self,
        user_id: UUID,
        notification_type: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        async with self.session_factory() as session:
            notification = Notification(
                user_id=user_id,
                type=notification_type,
                title=title,
                body=body,
                data=data,
            )
            session.add(notification)
            await session.flush()
            await session.refresh(notification)
            return notification

    async def list_for_user(
        self, user_id: UUID, unread_only: bool = False, limit: int = 20, offset: int = 0
    ) -> list[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read_at.is_(None))
        query = query.order_by(Notification.created_at.desc()).limit(limit).offset(offset)

        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def count_for_user(self, user_id: UUID, unread_only: bool = False) -> int:
        query = select(func.count(Notification.id)).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read_at.is_(None))

        async with self.session_factory() as session:
            return (await session.execute(query)).scalar() or 0

    async def unread_count(self, user_id: UUID) -> int:
        return await self.count_for_user(user_id, unread_only=True)

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> Notification | None:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Notification).where(
                    Notification.id == notification_id,
                    Notification.user_id == user_id,
                )
            )
            notification = result.scalar_one_or_none()
            if notification is None:
                return None

            if notification.read_at is None:
                notification.read_at = datetime.now(UTC)
                await session.flush()
            return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                update(Notification)
                .where(Notification.user_id == user_id, Notification.read_at.is_(None))
                .values(read_at=datetime.now(UTC))
            )
            return result.rowcount or 0


class SqlDeviceTokenStore(DeviceTokenStore):
    """Device push tokens, one session per call."""

    def __init__(self, session_factory: SessionFactory = get_db_context) -> None:
        self.session_factory = session_factory

    async def register(
        self,
        user_id: UUID,
        token: str,
        platform: str,
        device_id: str | None = None,
        app_version: str | None = None,
    ) -> DeviceToken:
        now = datetime.now(UTC)
        values = {
            "user_id": user_id,
            "platform": platform,
            "device_id": device_id,
            "app_version": app_version,
            "is_active": True,
            "last_used_at": now,
        }

        async with self.session_factory() as session:
            await session.execute(
                insert(DeviceToken)
                .values(token=token, **values)
                .on_conflict_do_update(
                    index_elements=["token"],
                    set_={**values, "updated_at": func.now()},
                )
            )
            result = await session.execute(select(DeviceToken).where(DeviceToken.token == token))
            return result.scalar_one()

    async def find_active_tokens(self, user_id: UUID) -> list[str]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(DeviceToken.token).where(
                    DeviceToken.user_id == user_id,
                    DeviceToken.is_active.is_(True),
                )
            )
            return list(result.scalars().all())

    async def deactivate(self, tokens: list[str]) -> int:
        if not tokens:
            return 0

        async with self.session_factory() as session:
            result = await session.execute(
                update(DeviceToken)
                .where(DeviceToken.token.in_(tokens))
                .values(is_active=False, updated_at=func.now())
            )
            return result.rowcount or 0

    async def remove(self, user_id: UUID, token: str) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                select(DeviceToken).where(DeviceToken.user_id == user_id, DeviceToken.token == token)
            )
            device = result.scalar_one_or_none()
            if device is None:
                return False

            await session.delete(device)
            return True

    async def deactivate_stale(self, older_than: datetime) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                update(DeviceToken)
                .where(
                    DeviceToken.is_active.is_(True),
                    func.coalesce(DeviceToken.last_used_at, DeviceToken.created_at) < older_than,
                )
                .values(is_active=False, updated_at=func.now())
            )
            return result.rowcount or 0

    async def delete_stale(self, older_than: datetime) -> int:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(DeviceToken).where(
                    func.coalesce(DeviceToken.last_used_at, DeviceToken.created_at) < older_than,
                )
            )
            return result.rowcount or 0
