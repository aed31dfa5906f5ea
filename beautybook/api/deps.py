"""API dependencies for authentication and service wiring."""

from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from beautybook.core.background_tasks import background_runner
from beautybook.core.exceptions import AuthenticationError, AuthorizationError
from beautybook.core.security import verify_token
from beautybook.database import get_db
from beautybook.domain.actors import Actor, ActorRole, actor_from_user
from beautybook.gateways.base import PaymentGateway
from beautybook.gateways.manual import ManualGateway
from beautybook.gateways.push import PushTransport, build_push_transport
from beautybook.models.user import User
from beautybook.services.booking_service import BookingOrchestrator
from beautybook.services.device_token_service import DeviceTokenService
from beautybook.services.notification_service import NotificationDispatcher
from beautybook.services.preference_service import NotificationPreferenceService
from beautybook.services.system_messenger import SystemMessenger
from beautybook.stores.base import NotificationStore
from beautybook.stores.sql import (
    SqlBookingStore,
    SqlConversationStore,
    SqlDeviceTokenStore,
    SqlNotificationStore,
    SqlPreferenceStore,
)

# Security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    payload = verify_token(credentials.credentials, token_type="access")
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise AuthenticationError("Invalid token subject")

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user


async def get_current_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get current user and verify they are an admin."""
    if not current_user.has_role("admin"):
        raise AuthorizationError("Admin access required")
    return current_user


async def get_current_actor(
    current_user: Annotated[User, Depends(get_current_user)],
    as_role: Annotated[ActorRole | None, Query(description="Act as this role")] = None,
) -> Actor:
    """Resolve who is acting for booking operations."""
    return actor_from_user(current_user, as_role)


# ==================== COLLABORATORS ====================


@lru_cache
def get_push_transport() -> PushTransport:
    """Process-wide push transport (closed on shutdown)."""
    return build_push_transport()


def get_payment_gateway() -> PaymentGateway:
    return ManualGateway()


def get_preference_service() -> NotificationPreferenceService:
    return NotificationPreferenceService(SqlPreferenceStore())


def get_notification_store() -> NotificationStore:
    return SqlNotificationStore()


def get_device_token_service() -> DeviceTokenService:
    return DeviceTokenService(SqlDeviceTokenStore())


def get_notification_dispatcher(
    preferences: Annotated[NotificationPreferenceService, Depends(get_preference_service)],
    notifications: Annotated[NotificationStore, Depends(get_notification_store)],
    push: Annotated[PushTransport, Depends(get_push_transport)],
) -> NotificationDispatcher:
    # Side-effect stores open their own sessions, independent of the request
    return NotificationDispatcher(
        preferences=preferences,
        notifications=notifications,
        device_tokens=SqlDeviceTokenStore(),
        push=push,
        runner=background_runner,
    )


def get_system_messenger() -> SystemMessenger:
    return SystemMessenger(SqlConversationStore())


def get_booking_orchestrator(
    db: Annotated[AsyncSession, Depends(get_db)],
    notifier: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
    messenger: Annotated[SystemMessenger, Depends(get_system_messenger)],
    payments: Annotated[PaymentGateway, Depends(get_payment_gateway)],
) -> BookingOrchestrator:
    return BookingOrchestrator(
        bookings=SqlBookingStore(db),
        notifier=notifier,
        messenger=messenger,
        payments=payments,
        runner=background_runner,
    )


CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentAdmin = Annotated[User, Depends(get_current_admin)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
Orchestrator = Annotated[BookingOrchestrator, Depends(get_booking_orchestrator)]
