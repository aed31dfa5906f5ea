"""Booking price calculation.

The customer pays:
- subtotal: sum of the booked services' prices
- platform fee: 15% of subtotal
- tax: 10% of (subtotal + platform fee)

Each component is rounded half-up to whole currency units. The resulting
breakdown is stored on the booking at creation and never recomputed.
"""

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from beautybook.config import settings


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_subtotal(services: Iterable[Mapping[str, Any]]) -> int:
    """Sum service prices."""
    return _round(sum((Decimal(str(s["price"])) for s in services), Decimal("0")))


def calculate_booking_amounts(
    services: Iterable[Mapping[str, Any]],
    platform_fee_percent: float | None = None,
    tax_percent: float | None = None,
) -> dict[str, int]:
    """Calculate the full price breakdown for a booking.

    Args:
        services: Booked services, each with a ``price``
        platform_fee_percent: Override for settings.platform_fee_percent
        tax_percent: Override for settings.tax_percent

    Returns:
        dict: subtotal, platform_fee, tax and total
    """
    fee_rate = Decimal(str(platform_fee_percent if platform_fee_percent is not None else settings.platform_fee_percent))
    tax_rate = Decimal(str(tax_percent if tax_percent is not None else settings.tax_percent))

    subtotal = calculate_subtotal(services)
    platform_fee = _round(Decimal(subtotal) * fee_rate / Decimal("100"))
    tax = _round(Decimal(subtotal + platform_fee) * tax_rate / Decimal("100"))

    return {
        "subtotal": subtotal,
        "platform_fee": platform_fee,
        "tax": tax,
        "total": subtotal + platform_fee + tax,
    }


def total_duration_minutes(services: Iterable[Mapping[str, Any]]) -> int:
    return sum(int(s["duration_minutes"]) for s in services)
