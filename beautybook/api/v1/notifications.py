"""Notification inbox and preference endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from beautybook.api.deps import CurrentUser, get_notification_store, get_preference_service
from beautybook.core.exceptions import NotFoundError
from beautybook.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationPreferences,
    NotificationPreferencesUpdate,
    NotificationResponse,
)
from beautybook.services.preference_service import NotificationPreferenceService, preferences_to_dict
from beautybook.stores.base import NotificationStore

router = APIRouter()

Notifications = Annotated[NotificationStore, Depends(get_notification_store)]
Preferences = Annotated[NotificationPreferenceService, Depends(get_preference_service)]


@router.get("/", response_model=NotificationListResponse)
async def get_notifications(
    current_user: CurrentUser,
    notifications: Notifications,
    unread_only: bool = Query(default=False),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> NotificationListResponse:
    """Get user's notifications."""
    items = await notifications.list_for_user(current_user.id, unread_only, limit, offset)
    total = await notifications.count_for_user(current_user.id, unread_only)
    unread_count = await notifications.unread_count(current_user.id)

    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in items],
        total=total,
        unread_count=unread_count,
        limit=limit,
        offset=offset,
    )


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: UUID,
    current_user: CurrentUser,
    notifications: Notifications,
):
    """Mark a notification as read."""
    notification = await notifications.mark_read(notification_id, current_user.id)
    if not notification:
        raise NotFoundError("Notification", str(notification_id))
    return notification


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    current_user: CurrentUser,
    notifications: Notifications,
) -> MarkAllReadResponse:
    """Mark all notifications as read."""
    updated = await notifications.mark_all_read(current_user.id)
    return MarkAllReadResponse(updated=updated)


@router.get("/preferences", response_model=NotificationPreferences)
async def get_notification_preferences(
    current_user: CurrentUser,
    preferences: Preferences,
) -> NotificationPreferences:
    """Get notification preferences (defaults are created on first read)."""
    preference = await preferences.get_preferences(current_user.id)
    return NotificationPreferences(**preferences_to_dict(preference))


@router.put("/preferences", response_model=NotificationPreferences)
async def update_notification_preferences(
    data: NotificationPreferencesUpdate,
    current_user: CurrentUser,
    preferences: Preferences,
) -> NotificationPreferences:
    """Update some or all notification preferences."""
    preference = await preferences.update_preferences(
        current_user.id, data.model_dump(exclude_none=True)
    )
    return NotificationPreferences(**preferences_to_dict(preference))
