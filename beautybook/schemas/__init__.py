"""Pydantic schemas for API validation."""

from beautybook.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingDeclineRequest,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
    ServiceItem,
    ServiceLocation,
)
from beautybook.schemas.notification import (
    DeviceTokenCreate,
    DeviceTokenResponse,
    NotificationListResponse,
    NotificationPreferences,
    NotificationPreferencesUpdate,
    NotificationResponse,
)

__all__ = [
    # Booking
    "BookingCancelRequest",
    "BookingCreate",
    "BookingDeclineRequest",
    "BookingListResponse",
    "BookingResponse",
    "BookingStatusUpdate",
    "ServiceItem",
    "ServiceLocation",
    # Notification
    "DeviceTokenCreate",
    "DeviceTokenResponse",
    "NotificationListResponse",
    "NotificationPreferences",
    "NotificationPreferencesUpdate",
    "NotificationResponse",
]
