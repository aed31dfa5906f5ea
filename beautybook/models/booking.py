"""Booking database model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from beautybook.database import Base

if TYPE_CHECKING:
    from beautybook.models.message import Conversation
    from beautybook.models.user import User


class Booking(Base):
    """Booking model.

    ``status_history`` is append-only: its first entry is always ``pending``
    and its last entry always matches ``status``. Only the conditional
    status update in the booking store writes either column.
    """

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    booking_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )  # BK-YYYYMMDDHHMMSS-XXXX
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )
    artist_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )

    # What was booked
    service_type: Mapped[str] = mapped_column(String(20), nullable=False)  # hair, makeup, combo
    occasion: Mapped[str] = mapped_column(String(50), nullable=False)
    services: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False
    )  # [{id, name, duration_minutes, price}]
    total_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    # Schedule
    scheduled_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    scheduled_start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    scheduled_end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    timezone: Mapped[str] = mapped_column(String(50), default="Asia/Seoul")

    # Location
    service_location: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    special_requests: Mapped[str | None] = mapped_column(Text)

    # Status
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="pending", index=True
    )  # pending, confirmed, declined, paid, in_progress, completed, cancelled
    status_history: Mapped[list[dict[str, str]]] = mapped_column(JSONB, nullable=False)

    # Payment (in whole KRW)
    payment_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="pending"
    )  # pending, paid, failed, refunded
    payment_authorization_id: Mapped[str | None] = mapped_column(String(100))
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    breakdown: Mapped[dict[str, int]] = mapped_column(
        JSONB, nullable=False
    )  # {subtotal, platform_fee, tax, total}

    # Decline / cancellation
    decline_reason: Mapped[str | None] = mapped_column(Text)
    cancelled_by: Mapped[str | None] = mapped_column(String(20))  # customer, artist, admin
    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Completion (set iff status == completed)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )

    # Timestamps
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    customer: Mapped["User"] = relationship("User", foreign_keys=[customer_id])
    artist: Mapped["User"] = relationship("User", foreign_keys=[artist_id])
    conversations: Mapped[list["Conversation"]] = relationship(
        "Conversation", back_populates="booking"
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in ("completed", "declined", "cancelled")
