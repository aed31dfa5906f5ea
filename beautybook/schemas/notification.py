"""Notification, preference and device token schemas."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationResponse(BaseModel):
    """Schema for an inbox notification."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: str
    title: str
    body: str
    data: dict[str, Any] | None
    is_read: bool
    read_at: datetime | None
    created_at: datetime | None = None


class NotificationListResponse(BaseModel):
    """Schema for paginated notification list."""

    notifications: list[NotificationResponse]
    total: int
    unread_count: int
    limit: int
    offset: int


class MarkAllReadResponse(BaseModel):
    updated: int


class NotificationPreferences(BaseModel):
    """Per-type opt-in flags."""

    model_config = ConfigDict(from_attributes=True)

    booking_created: bool
    booking_confirmed: bool
    booking_declined: bool
    booking_cancelled: bool
    booking_in_progress: bool
    booking_completed: bool
    new_message: bool
    marketing: bool


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; omitted keys keep their value."""

    model_config = ConfigDict(extra="forbid")

    booking_created: bool | None = None
    booking_confirmed: bool | None = None
    booking_declined: bool | None = None
    booking_cancelled: bool | None = None
    booking_in_progress: bool | None = None
    booking_completed: bool | None = None
    new_message: bool | None = None
    marketing: bool | None = None


class DeviceTokenCreate(BaseModel):
    """Schema for registering a push token."""

    token: str = Field(..., min_length=1, max_length=512)
    platform: Literal["ios", "android", "web"]
    device_id: str | None = Field(None, max_length=255)
    app_version: str | None = Field(None, max_length=50)


class DeviceTokenResponse(BaseModel):
    """Schema for a registered device."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    token: str
    platform: str
    device_id: str | None
    app_version: str | None
    is_active: bool
    last_used_at: datetime | None
