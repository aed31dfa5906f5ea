from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from beautybook.api.deps import (
    get_booking_orchestrator,
    get_current_user,
    get_device_token_service,
    get_notification_store,
    get_preference_service,
)
from beautybook.core.background_tasks import BackgroundTaskRunner
from beautybook.main import app
from beautybook.models.user import User
from beautybook.services.booking_service import BookingOrchestrator
from beautybook.services.device_token_service import DeviceTokenService
from beautybook.services.notification_service import NotificationDispatcher
from beautybook.services.preference_service import NotificationPreferenceService
from beautybook.services.system_messenger import SystemMessenger
from fakes import (
    InMemoryBookingStore,
    InMemoryConversationStore,
    InMemoryDeviceTokenStore,
    InMemoryNotificationStore,
    InMemoryPreferenceStore,
    RecordingPushTransport,
    StubPaymentGateway,
    make_user,
)


@pytest.fixture
def customer() -> User:
    return make_user("customer")


@pytest.fixture
def artist() -> User:
    return make_user("artist")


@pytest.fixture
def admin() -> User:
    return make_user("admin")


@pytest.fixture
def runner() -> BackgroundTaskRunner:
    return BackgroundTaskRunner()


@pytest.fixture
def booking_store() -> InMemoryBookingStore:
    return InMemoryBookingStore()


@pytest.fixture
def conversation_store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def preference_store() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture
def notification_store() -> InMemoryNotificationStore:
    return InMemoryNotificationStore()


@pytest.fixture
def device_store() -> InMemoryDeviceTokenStore:
    return InMemoryDeviceTokenStore()


@pytest.fixture
def push() -> RecordingPushTransport:
    return RecordingPushTransport()


@pytest.fixture
def payments() -> StubPaymentGateway:
    return StubPaymentGateway()


@pytest.fixture
def preference_service(preference_store) -> NotificationPreferenceService:
    return NotificationPreferenceService(preference_store)


@pytest.fixture
def dispatcher(preference_service, notification_store, device_store, push, runner) -> NotificationDispatcher:
    return NotificationDispatcher(
        preferences=preference_service,
        notifications=notification_store,
        device_tokens=device_store,
        push=push,
        runner=runner,
    )


@pytest.fixture
def messenger(conversation_store) -> SystemMessenger:
    return SystemMessenger(conversation_store)


@pytest.fixture
def orchestrator(booking_store, dispatcher, messenger, payments, runner) -> BookingOrchestrator:
    return BookingOrchestrator(
        bookings=booking_store,
        notifier=dispatcher,
        messenger=messenger,
        payments=payments,
        runner=runner,
    )


@pytest.fixture
def current_user(customer) -> dict:
    """Mutable holder so a test can switch the authenticated user."""
    return {"user": customer}


@pytest.fixture
async def client(
    current_user, orchestrator, notification_store, preference_service, device_store
) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_current_user] = lambda: current_user["user"]
    app.dependency_overrides[get_booking_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_notification_store] = lambda: notification_store
    app.dependency_overrides[get_preference_service] = lambda: preference_service
    app.dependency_overrides[get_device_token_service] = lambda: DeviceTokenService(device_store)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
