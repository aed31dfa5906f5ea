"""Booking-related Pydantic schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class ServiceItem(BaseModel):
    """One booked service."""

    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    price: int = Field(..., ge=0)  # whole KRW


class ServiceLocation(BaseModel):
    """Where the artist performs the service."""

    address: str = Field(..., min_length=1, max_length=500)
    address_detail: str | None = Field(None, max_length=200)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class BookingCreate(BaseModel):
    """Schema for creating a booking."""

    artist_id: UUID
    service_type: Literal["hair", "makeup", "combo"]
    occasion: str = Field(..., min_length=1, max_length=50)
    scheduled_date: datetime
    scheduled_start_time: datetime
    scheduled_end_time: datetime
    timezone: str = Field(default="Asia/Seoul", max_length=50)
    services: list[ServiceItem] = Field(..., min_length=1)
    location: ServiceLocation
    special_requests: str | None = Field(None, max_length=1000)

    @field_validator("scheduled_end_time")
    @classmethod
    def validate_end_time(cls, v: datetime, info: ValidationInfo) -> datetime:
        start = info.data.get("scheduled_start_time")
        if start and v <= start:
            raise ValueError("scheduled_end_time must be after scheduled_start_time")
        return v


class BookingPriceBreakdown(BaseModel):
    """Schema for booking price breakdown."""

    subtotal: int
    platform_fee: int
    tax: int
    total: int


class StatusHistoryEntry(BaseModel):
    status: str
    timestamp: datetime


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_number: str
    customer_id: UUID
    artist_id: UUID

    # Services
    service_type: str
    occasion: str
    services: list[ServiceItem]
    total_duration_minutes: int

    # Schedule
    scheduled_date: datetime
    scheduled_start_time: datetime
    scheduled_end_time: datetime
    timezone: str

    # Location
    service_location: ServiceLocation
    special_requests: str | None

    # Status
    status: str
    status_history: list[StatusHistoryEntry]
    payment_status: str

    # Pricing
    total_amount: int
    breakdown: BookingPriceBreakdown

    # Decline / cancellation
    decline_reason: str | None
    cancelled_by: str | None
    cancellation_reason: str | None

    # Timestamps
    confirmed_at: datetime | None
    cancelled_at: datetime | None
    completed_at: datetime | None
    completed_by: UUID | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BookingListResponse(BaseModel):
    """Schema for paginated booking list."""

    bookings: list[BookingResponse]
    limit: int
    offset: int


class BookingDeclineRequest(BaseModel):
    """Schema for an artist declining a booking."""

    reason: str | None = Field(None, max_length=1000)


class BookingCancelRequest(BaseModel):
    """Schema for cancelling a booking."""

    reason: str | None = Field(None, max_length=1000)


class BookingStatusUpdate(BaseModel):
    """Schema for a validated status change."""

    status: Literal["confirmed", "declined", "paid", "in_progress", "completed", "cancelled"]
    reason: str | None = Field(None, max_length=1000)
    as_role: Literal["customer", "artist", "admin"] | None = None
