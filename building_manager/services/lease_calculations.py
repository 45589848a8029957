"""
Lease arithmetic used by onboarding and lease extension.

All money values are Decimals rounded half-up to two places.
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..database.models import RentAdjustmentType
from .timeutils import add_months, months_between

CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def round_money(value) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_lease_duration(start: date, end: date) -> int:
    """Whole months between two dates, never negative."""
    return max(0, months_between(start, end))


def calculate_total_monthly_rent(base_rent, service_charge, parking_spots: int, parking_fee_per_spot) -> Decimal:
    parking = Decimal(parking_fee_per_spot or 0) * (parking_spots or 0)
    return round_money(Decimal(base_rent) + Decimal(service_charge or 0) + parking)


def calculate_new_rent(current_rent, adjustment_type: RentAdjustmentType, value: Optional[Decimal]) -> Decimal:
    """
    Apply a rent adjustment.

    PERCENTAGE raises by value percent, FLAT adds value, CUSTOM replaces the
    rent with value. NO_CHANGE, or a missing value, keeps the current rent.
    """
    current = Decimal(current_rent)
    if value is None or adjustment_type == RentAdjustmentType.NO_CHANGE:
        return round_money(current)
    value = Decimal(value)
    if adjustment_type == RentAdjustmentType.PERCENTAGE:
        return round_money(current * (1 + value / HUNDRED))
    if adjustment_type == RentAdjustmentType.FLAT:
        return round_money(current + value)
    return round_money(value)


def calculate_rent_adjustment_percentage(previous_rent, new_rent) -> Decimal:
    previous = Decimal(previous_rent)
    if previous == 0:
        return Decimal("0.00")
    return round_money((Decimal(new_rent) - previous) / previous * HUNDRED)


def days_until_expiry(end_date: date, today: Optional[date] = None) -> int:
    return (end_date - (today or date.today())).days


def expiry_urgency_level(days_remaining: int) -> str:
    if days_remaining <= 14:
        return "critical"
    if days_remaining <= 30:
        return "urgent"
    if days_remaining <= 60:
        return "warning"
    return "normal"


def default_new_end_date(current_end: date) -> date:
    """Default extension term of one year."""
    return add_months(current_end, 12)
