"""Storage interfaces.

Services depend on these abstractions, never on a session directly. The
SQL implementations live in ``beautybook.stores.sql``; tests substitute
in-memory versions.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any
from uuid import UUID

from beautybook.models import (
    Booking,
    Conversation,
    DeviceToken,
    Message,
    Notification,
    NotificationPreference,
)


class BookingStore(ABC):
    """Booking persistence."""

    @abstractmethod
    async def insert(self, values: dict[str, Any]) -> Booking:
        """Persist a new booking, assigning it a unique booking number."""

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Booking | None:
        ...

    @abstractmethod
    async def conditional_update_status(
        self,
        booking_id: UUID,
        expected_status: str,
        new_status: str,
        history_entry: dict[str, str],
        extra: dict[str, Any] | None = None,
    ) -> Booking:
        """Atomically move a booking from expected_status to new_status.

        The write applies only while the stored status still equals
        expected_status. history_entry is appended to status_history and
        extra carries transition-specific columns.

        Raises:
            NotFoundError: If the booking does not exist
            ConflictError: If the stored status no longer matches
        """

    @abstractmethod
    async def find_by_customer(
        self, customer_id: UUID, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[Booking]:
        ...

    @abstractmethod
    async def find_by_artist(
        self, artist_id: UUID, status: str | None = None, limit: int = 20, offset: int = 0
    ) -> list[Booking]:
        ...

    @abstractmethod
    async def update_payment_status(self, booking_id: UUID, payment_status: str) -> Booking:
        """Set payment_status only. Raises NotFoundError if missing."""

    @abstractmethod
    async def record_payment_authorization(self, booking_id: UUID, authorization_id: str) -> Booking:
        """Store the gateway's hold reference. Raises NotFoundError if missing."""


class ConversationStore(ABC):
    """Customer/artist conversations and their messages."""

    @abstractmethod
    async def get_or_create(
        self, customer_id: UUID, artist_id: UUID, booking_id: UUID | None = None
    ) -> Conversation:
        """Return the active conversation for the pair, creating it if needed."""

    @abstractmethod
    async def post_message(
        self,
        conversation_id: UUID,
        sender_role: str,
        content: str,
        booking_id: UUID | None = None,
        sender_id: UUID | None = None,
        message_type: str = "system",
    ) -> Message:
        """Append a message and bump the conversation's unread counters."""


class PreferenceStore(ABC):
    """Notification preference rows, one per user."""

    @abstractmethod
    async def get(self, user_id: UUID) -> NotificationPreference | None:
        ...

    @abstractmethod
    async def create(self, user_id: UUID) -> NotificationPreference:
        """Create the default row, or return the existing one on a race."""

    @abstractmethod
    async def upsert(self, user_id: UUID, values: dict[str, bool]) -> NotificationPreference:
        ...


class NotificationStore(ABC):
    """In-app notification inbox."""

    @abstractmethod
    async def create(
        self,
        user_id: UUID,
        notification_type: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        ...

    @abstractmethod
    async def list_for_user(
        self, user_id: UUID, unread_only: bool = False, limit: int = 20, offset: int = 0
    ) -> list[Notification]:
        ...

    @abstractmethod
    async def count_for_user(self, user_id: UUID, unread_only: bool = False) -> int:
        ...

    @abstractmethod
    async def unread_count(self, user_id: UUID) -> int:
        ...

    @abstractmethod
    async def mark_read(self, notification_id: UUID, user_id: UUID) -> Notification | None:
        """Mark one of the user's notifications read. None if not theirs."""

    @abstractmethod
    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark every unread notification read and return how many changed."""


class DeviceTokenStore(ABC):
    """Push tokens registered by user devices."""

    @abstractmethod
    async def register(
        self,
        user_id: UUID,
        token: str,
        platform: str,
        device_id: str | None = None,
        app_version: str | None = None,
    ) -> DeviceToken:
        """Upsert by token. Re-registering reactivates and reassigns it."""

    @abstractmethod
    async def find_active_tokens(self, user_id: UUID) -> list[str]:
        ...

    @abstractmethod
    async def deactivate(self, tokens: list[str]) -> int:
        ...

    @abstractmethod
    async def remove(self, user_id: UUID, token: str) -> bool:
        ...

    @abstractmethod
    async def deactivate_stale(self, older_than: datetime) -> int:
        """Deactivate tokens not used since older_than."""

    @abstractmethod
    async def delete_stale(self, older_than: datetime) -> int:
        """Delete tokens, active or not, not used since older_than."""
