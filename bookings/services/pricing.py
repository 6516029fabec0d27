import math
from datetime import datetime
from decimal import Decimal
from typing import NamedTuple

ZERO = Decimal("0.00")

# (upper bound in hours, inclusive; tier name; RateCard field)
FLAT_TIERS = [
    (4, "4h", "four_hour"),
    (6, "6h", "six_hour"),
    (12, "12h", "twelve_hour"),
    (24, "24h", "twenty_four_hour"),
]
DAILY_TIER = "daily"
NO_TIER = "none"


class RateCard(NamedTuple):
    four_hour: Decimal
    six_hour: Decimal
    twelve_hour: Decimal
    twenty_four_hour: Decimal
    daily: Decimal


class PriceQuote(NamedTuple):
    hours: float
    tier: str
    total: Decimal


def duration_hours(start: datetime | None, end: datetime | None) -> float:
    """Return the rental length in (fractional) hours; negative for inverted windows."""
    if not start or not end:
        return 0.0
    return (end - start).total_seconds() / 3600


def price_tier(hours: float) -> str:
    if hours <= 0:
        return NO_TIER
    for limit, name, _ in FLAT_TIERS:
        if hours <= limit:
            return name
    return DAILY_TIER


def billable_days(hours: float) -> int:
    """Whole days billed on the daily tier, rounding any started day up."""
    if hours <= 0:
        return 0
    return math.ceil(hours / 24)


def compute_price(hours: float, rate_card: RateCard) -> Decimal:
    """
    Price a rental of the given length from a rate card.

    Up to 24 hours the first flat tier that covers the duration applies
    (4h, 6h, 12h, 24h; upper bounds inclusive). Longer rentals are billed
    per started day at the daily rate. Non-positive durations cost nothing.
    """
    tier = price_tier(hours)
    if tier == NO_TIER:
        return ZERO
    if tier == DAILY_TIER:
        return Decimal(billable_days(hours)) * Decimal(rate_card.daily)
    for _, name, field_name in FLAT_TIERS:
        if name == tier:
            return Decimal(getattr(rate_card, field_name))
    return ZERO


def quote_rental(vehicle, start: datetime | None, end: datetime | None) -> PriceQuote:
    """
    Suggest a price for drafting a rental of ``vehicle`` over ``[start, end)``.

    The suggestion is only a default: the operator may override it and, once
    a rental is saved, its price is never recomputed from the rate card.
    """
    hours = duration_hours(start, end)
    if vehicle is None or hours <= 0:
        return PriceQuote(hours, NO_TIER, ZERO)
    return PriceQuote(hours, price_tier(hours), compute_price(hours, vehicle.rate_card))
