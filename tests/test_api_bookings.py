from uuid import uuid4

import pytest

from fakes import booking_payload, make_user

BOOKINGS = "/api/v1/bookings"


@pytest.fixture
async def created(client, artist, runner) -> dict:
    response = await client.post(f"{BOOKINGS}/", json=booking_payload(artist.id).model_dump(mode="json"))
    assert response.status_code == 201
    await runner.drain()
    return response.json()


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_create_booking(created, customer):
    assert created["status"] == "pending"
    assert created["customer_id"] == str(customer.id)
    assert created["total_amount"] == 126500
    assert [entry["status"] for entry in created["status_history"]] == ["pending"]


async def test_create_booking_validation_error(client, artist):
    payload = booking_payload(artist.id).model_dump(mode="json")
    payload["services"] = []

    response = await client.post(f"{BOOKINGS}/", json=payload)

    assert response.status_code == 422


async def test_create_booking_payment_declined(client, artist, payments):
    payments.approve = False

    response = await client.post(f"{BOOKINGS}/", json=booking_payload(artist.id).model_dump(mode="json"))

    assert response.status_code == 402


async def test_create_booking_requires_customer_role(client, current_user, artist):
    current_user["user"] = artist

    response = await client.post(f"{BOOKINGS}/", json=booking_payload(uuid4()).model_dump(mode="json"))

    assert response.status_code == 403


async def test_accept_and_decline_flow(client, created, current_user, artist):
    current_user["user"] = artist

    response = await client.post(f"{BOOKINGS}/{created['id']}/accept")
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"

    response = await client.post(f"{BOOKINGS}/{created['id']}/decline", json={"reason": "late"})
    assert response.status_code == 409
    assert response.json()["detail"] == "Only pending bookings can be declined"


async def test_accept_by_foreign_artist(client, created, current_user):
    current_user["user"] = make_user("artist")

    response = await client.post(f"{BOOKINGS}/{created['id']}/accept")

    assert response.status_code == 403


async def test_accept_unknown_booking(client, current_user, artist):
    current_user["user"] = artist

    response = await client.post(f"{BOOKINGS}/{uuid4()}/accept")

    assert response.status_code == 404


async def test_cancel_pending(client, created):
    response = await client.post(f"{BOOKINGS}/{created['id']}/cancel", json={"reason": "plans changed"})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "cancelled"
    assert body["cancelled_by"] == "customer"
    assert body["cancellation_reason"] == "plans changed"


async def test_status_update_and_completion(client, created, current_user, artist, admin):
    booking_url = f"{BOOKINGS}/{created['id']}"

    current_user["user"] = artist
    assert (await client.post(f"{booking_url}/accept")).status_code == 200

    current_user["user"] = admin
    response = await client.post(f"{booking_url}/mark-paid")
    assert response.json()["status"] == "paid"
    assert response.json()["payment_status"] == "paid"

    current_user["user"] = artist
    response = await client.patch(f"{booking_url}/status", json={"status": "in_progress"})
    assert response.status_code == 200

    response = await client.post(f"{booking_url}/complete")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["completed_by"] == str(artist.id)
    assert [e["status"] for e in body["status_history"]] == [
        "pending", "confirmed", "paid", "in_progress", "completed",
    ]


async def test_status_update_invalid_transition(client, created, current_user, admin):
    current_user["user"] = admin

    response = await client.patch(f"{BOOKINGS}/{created['id']}/status", json={"status": "completed"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Invalid status transition: pending → completed"


async def test_status_update_role_not_held(client, created):
    response = await client.patch(
        f"{BOOKINGS}/{created['id']}/status", json={"status": "confirmed", "as_role": "artist"}
    )
    assert response.status_code == 403


async def test_mark_paid_requires_admin(client, created):
    response = await client.post(f"{BOOKINGS}/{created['id']}/mark-paid")
    assert response.status_code == 403


async def test_get_booking_access(client, created, current_user, admin):
    assert (await client.get(f"{BOOKINGS}/{created['id']}")).status_code == 200

    current_user["user"] = admin
    assert (await client.get(f"{BOOKINGS}/{created['id']}")).status_code == 200

    current_user["user"] = make_user("customer")
    assert (await client.get(f"{BOOKINGS}/{created['id']}")).status_code == 403


async def test_list_bookings(client, created, current_user, artist):
    response = await client.get(f"{BOOKINGS}/")
    assert [b["id"] for b in response.json()["bookings"]] == [created["id"]]

    current_user["user"] = artist
    response = await client.get(f"{BOOKINGS}/", params={"role": "artist", "status": "confirmed"})
    assert response.status_code == 200
    assert response.json()["bookings"] == []

    response = await client.get(f"{BOOKINGS}/", params={"role": "artist"})
    assert len(response.json()["bookings"]) == 1
