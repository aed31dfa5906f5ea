"""Notification preference service."""

import logging
from typing import Any
from uuid import UUID

from beautybook.core.exceptions import ValidationError
from beautybook.models.user import NotificationPreference
from beautybook.stores.base import PreferenceStore

logger = logging.getLogger(__name__)

# Event type -> preference column. Event types not listed here are always on.
PREFERENCE_KEYS: dict[str, str] = {
    "booking_created": "booking_created",
    "booking_confirmed": "booking_confirmed",
    "booking_declined": "booking_declined",
    "booking_cancelled": "booking_cancelled",
    "booking_cancelled_by_artist": "booking_cancelled",
    "booking_in_progress": "booking_in_progress",
    "booking_completed": "booking_completed",
    "new_message": "new_message",
    "marketing": "marketing",
}

DEFAULT_PREFERENCES: dict[str, bool] = {
    key: key != "marketing" for key in dict.fromkeys(PREFERENCE_KEYS.values())
}


def preferences_to_dict(preference: NotificationPreference) -> dict[str, bool]:
    return {key: bool(getattr(preference, key)) for key in DEFAULT_PREFERENCES}


class NotificationPreferenceService:
    """Reads and updates per-user notification opt-ins."""

    def __init__(self, store: PreferenceStore) -> None:
        self.store = store

    async def get_preferences(self, user_id: UUID) -> NotificationPreference:
        """Return the user's preferences, creating the defaults on first use."""
        preference = await self.store.get(user_id)
        if preference is None:
            preference = await self.store.create(user_id)
        return preference

    async def update_preferences(self, user_id: UUID, updates: dict[str, Any]) -> NotificationPreference:
        """Apply a partial update.

        Raises:
            ValidationError: On unknown keys or non-boolean values
        """
        unknown = sorted(set(updates) - set(DEFAULT_PREFERENCES))
        if unknown:
            raise ValidationError(f"Unknown notification preference(s): {', '.join(unknown)}")

        invalid = sorted(key for key, value in updates.items() if not isinstance(value, bool))
        if invalid:
            raise ValidationError(f"Notification preference values must be booleans: {', '.join(invalid)}")

        return await self.store.upsert(user_id, dict(updates))

    async def is_enabled(self, user_id: UUID, event_type: str) -> bool:
        key = PREFERENCE_KEYS.get(event_type)
        if key is None:
            return True

        preference = await self.get_preferences(user_id)
        return bool(getattr(preference, key))
