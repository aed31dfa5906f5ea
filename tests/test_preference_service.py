import pytest

from beautybook.core.exceptions import ValidationError
from beautybook.services.preference_service import DEFAULT_PREFERENCES, preferences_to_dict


async def test_defaults_created_on_first_read(preference_service, preference_store, customer):
    preference = await preference_service.get_preferences(customer.id)

    assert preferences_to_dict(preference) == DEFAULT_PREFERENCES
    assert preference.marketing is False
    assert preference_store.create_calls == 1

    await preference_service.get_preferences(customer.id)
    assert preference_store.create_calls == 1


async def test_partial_update(preference_service, customer):
    preference = await preference_service.update_preferences(customer.id, {"booking_completed": False})

    assert preference.booking_completed is False
    assert preference.booking_confirmed is True


async def test_unknown_key_rejected(preference_service, customer):
    with pytest.raises(ValidationError) as exc_info:
        await preference_service.update_preferences(customer.id, {"sms": True})
    assert "sms" in exc_info.value.detail


async def test_non_boolean_rejected(preference_service, customer):
    with pytest.raises(ValidationError):
        await preference_service.update_preferences(customer.id, {"booking_created": "yes"})


@pytest.mark.parametrize(
    "event_type, column",
    [
        ("booking_created", "booking_created"),
        ("booking_cancelled_by_artist", "booking_cancelled"),
        ("booking_in_progress", "booking_in_progress"),
    ],
)
async def test_is_enabled_follows_column(preference_service, customer, event_type, column):
    assert await preference_service.is_enabled(customer.id, event_type)

    await preference_service.update_preferences(customer.id, {column: False})
    assert not await preference_service.is_enabled(customer.id, event_type)


async def test_unmapped_types_always_enabled(preference_service, preference_store, customer):
    assert await preference_service.is_enabled(customer.id, "booking_paid")
    assert preference_store.create_calls == 0
