"""Storage interfaces and their SQL implementations."""

from beautybook.stores.base import (
    BookingStore,
    ConversationStore,
    DeviceTokenStore,
    NotificationStore,
    PreferenceStore,
)

__all__ = [
    "BookingStore",
    "ConversationStore",
    "DeviceTokenStore",
    "NotificationStore",
    "PreferenceStore",
]
