"""Booking state machine."""

from datetime import UTC, datetime
from enum import Enum

from beautybook.core.exceptions import ConflictError


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    PAID = "paid"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment status, tracked independently of the booking status."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


BOOKING_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"confirmed", "declined", "cancelled"},
    "confirmed": {"paid", "cancelled", "in_progress"},
    "paid": {"in_progress", "completed", "cancelled"},
    "in_progress": {"completed", "cancelled"},
    "completed": set(),
    "declined": set(),
    "cancelled": set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in BOOKING_TRANSITIONS.items() if not targets)


def _value(status: str | BookingStatus) -> str:
    return status.value if isinstance(status, BookingStatus) else status


def is_valid_transition(current: str | BookingStatus, target: str | BookingStatus) -> bool:
    """True iff target is an allowed successor of current."""
    return _value(target) in BOOKING_TRANSITIONS.get(_value(current), set())


def is_terminal(status: str | BookingStatus) -> bool:
    return _value(status) in TERMINAL_STATUSES


def assert_booking_transition(current: str | BookingStatus, target: str | BookingStatus) -> None:
    if not is_valid_transition(current, target):
        raise ConflictError(
            f"Invalid status transition: {_value(current)} → {_value(target)}"
        )


def build_history_entry(status: str | BookingStatus, at: datetime | None = None) -> dict[str, str]:
    """Single status_history entry: {"status": ..., "timestamp": ISO-8601}."""
    timestamp = (at or datetime.now(UTC)).isoformat()
    return {"status": _value(status), "timestamp": timestamp}
