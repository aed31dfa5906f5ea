"""Booking number generation."""

import random
import string
from datetime import UTC, datetime


def generate_booking_number(now: datetime | None = None) -> str:
    """Generate a booking number in format BK-YYYYMMDDHHMMSS-XXXX.

    Uniqueness is enforced by the database; the booking store retries with
    a fresh number when an insert collides.

    Args:
        now: Timestamp to embed (defaults to the current UTC time)

    Returns:
        str: Booking number like 'BK-20250315093000-A3B7'
    """
    date_part = (now or datetime.now(UTC)).strftime("%Y%m%d%H%M%S")
    random_part = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"BK-{date_part}-{random_part}"
