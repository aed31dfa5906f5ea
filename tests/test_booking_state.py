from datetime import UTC, datetime

import pytest

from beautybook.core.exceptions import ConflictError
from beautybook.domain.booking_state import (
    BOOKING_TRANSITIONS,
    BookingStatus,
    assert_booking_transition,
    build_history_entry,
    is_terminal,
    is_valid_transition,
)

ALL_STATUSES = [s.value for s in BookingStatus]

ALLOWED = {
    ("pending", "confirmed"),
    ("pending", "declined"),
    ("pending", "cancelled"),
    ("confirmed", "paid"),
    ("confirmed", "cancelled"),
    ("confirmed", "in_progress"),
    ("paid", "in_progress"),
    ("paid", "completed"),
    ("paid", "cancelled"),
    ("in_progress", "completed"),
    ("in_progress", "cancelled"),
}


def test_transition_table_matches_allowed_pairs():
    for current in ALL_STATUSES:
        for target in ALL_STATUSES:
            assert is_valid_transition(current, target) == ((current, target) in ALLOWED)


@pytest.mark.parametrize("status", ALL_STATUSES)
def test_self_transitions_are_invalid(status):
    assert not is_valid_transition(status, status)


def test_unknown_statuses_are_invalid():
    assert not is_valid_transition("no_show", "completed")
    assert not is_valid_transition("pending", "archived")


def test_enum_members_are_accepted():
    assert is_valid_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)


@pytest.mark.parametrize("status", ["declined", "completed", "cancelled"])
def test_terminal_statuses_have_no_successors(status):
    assert is_terminal(status)
    assert BOOKING_TRANSITIONS[status] == set()
    for target in ALL_STATUSES:
        with pytest.raises(ConflictError):
            assert_booking_transition(status, target)


@pytest.mark.parametrize("status", ["pending", "confirmed", "paid", "in_progress"])
def test_non_terminal_statuses(status):
    assert not is_terminal(status)


def test_assert_booking_transition_message():
    with pytest.raises(ConflictError) as exc_info:
        assert_booking_transition("confirmed", "declined")

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == "Invalid status transition: confirmed → declined"


def test_build_history_entry():
    at = datetime(2025, 3, 15, 9, 30, tzinfo=UTC)
    assert build_history_entry(BookingStatus.CONFIRMED, at) == {
        "status": "confirmed",
        "timestamp": "2025-03-15T09:30:00+00:00",
    }
