"""Booking endpoints."""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Query, status

from beautybook.api.deps import CurrentActor, CurrentAdmin, CurrentUser, Orchestrator
from beautybook.domain.actors import actor_from_user
from beautybook.domain.booking_state import BookingStatus
from beautybook.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingDeclineRequest,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
)

router = APIRouter()


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Request a booking with an artist."""
    customer = actor_from_user(current_user, "customer")
    return await orchestrator.create_booking(customer.id, data)


@router.get("/", response_model=BookingListResponse)
async def list_bookings(
    current_user: CurrentUser,
    orchestrator: Orchestrator,
    role: Annotated[Literal["customer", "artist"], Query()] = "customer",
    status_filter: Annotated[BookingStatus | None, Query(alias="status")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    """List the current user's bookings as customer or artist."""
    actor = actor_from_user(current_user, role)
    status_value = status_filter.value if status_filter else None

    if role == "artist":
        bookings = await orchestrator.list_artist_bookings(actor.id, status_value, limit, offset)
    else:
        bookings = await orchestrator.list_customer_bookings(actor.id, status_value, limit, offset)

    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        limit=limit,
        offset=offset,
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    actor: CurrentActor,
    orchestrator: Orchestrator,
):
    """Get booking details (customer, artist or admin)."""
    return await orchestrator.get_booking_for_actor(booking_id, actor)


@router.post("/{booking_id}/accept", response_model=BookingResponse)
async def accept_booking(
    booking_id: UUID,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Artist accepts a pending booking."""
    artist = actor_from_user(current_user, "artist")
    return await orchestrator.accept_booking(booking_id, artist.id)


@router.post("/{booking_id}/decline", response_model=BookingResponse)
async def decline_booking(
    booking_id: UUID,
    data: BookingDeclineRequest,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Artist declines a pending booking."""
    artist = actor_from_user(current_user, "artist")
    return await orchestrator.decline_booking(booking_id, artist.id, data.reason)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    data: BookingCancelRequest,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Customer cancels a booking the artist has not answered yet."""
    customer = actor_from_user(current_user, "customer")
    return await orchestrator.cancel_pending_booking(booking_id, customer.id, data.reason)


@router.post("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: UUID,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Artist completes a paid booking in progress."""
    artist = actor_from_user(current_user, "artist")
    return await orchestrator.complete_booking(booking_id, artist.id)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: UUID,
    data: BookingStatusUpdate,
    current_user: CurrentUser,
    orchestrator: Orchestrator,
):
    """Move a booking to any legal next status the caller may set."""
    actor = actor_from_user(current_user, data.as_role)
    return await orchestrator.update_booking_status_validated(
        booking_id, data.status, actor, data.reason
    )


@router.post("/{booking_id}/mark-paid", response_model=BookingResponse)
async def mark_booking_paid(
    booking_id: UUID,
    admin: CurrentAdmin,
    orchestrator: Orchestrator,
):
    """Record a settled payment (admin only)."""
    return await orchestrator.mark_booking_paid(booking_id)
