"""Database models."""

from beautybook.models.booking import Booking
from beautybook.models.message import Conversation, Message, Notification
from beautybook.models.user import DeviceToken, NotificationPreference, User

__all__ = [
    # User
    "User",
    "NotificationPreference",
    "DeviceToken",
    # Booking
    "Booking",
    # Message
    "Conversation",
    "Message",
    "Notification",
]
