from datetime import datetime
from typing import Iterable

from django.utils import timezone

UPCOMING = "upcoming"
ACTIVE = "active"
COMPLETED = "completed"


def local_time(value: datetime) -> datetime:
    if timezone.is_aware(value):
        return timezone.localtime(value)
    return value


def classify(booking, now: datetime | None = None) -> str:
    """
    Derive the lifecycle state of a booking from the clock.

    - before start: upcoming
    - start <= now < end: active
    - from end on: completed
    """
    now = now or timezone.now()
    if now < booking.start:
        return UPCOMING
    if now < booking.end:
        return ACTIVE
    return COMPLETED


def is_occupied(booking, now: datetime | None = None) -> bool:
    return classify(booking, now) == ACTIVE


def same_day(first: datetime, second: datetime) -> bool:
    """Calendar-day equality in the current timezone, ignoring time of day."""
    return local_time(first).date() == local_time(second).date()


def is_returning_today(booking, now: datetime | None = None) -> bool:
    now = now or timezone.now()
    return same_day(booking.end, now)


def returning_today(bookings: Iterable, now: datetime | None = None) -> list:
    """Active bookings whose vehicle is due back today."""
    now = now or timezone.now()
    return [
        booking
        for booking in bookings
        if classify(booking, now) == ACTIVE and is_returning_today(booking, now)
    ]


def rented_vehicle_ids(bookings: Iterable, now: datetime | None = None) -> set:
    """Ids of vehicles that are out on an active booking right now."""
    now = now or timezone.now()
    return {booking.vehicle_id for booking in bookings if is_occupied(booking, now)}


def vehicle_is_rented(vehicle_id, bookings: Iterable, now: datetime | None = None) -> bool:
    return vehicle_id in rented_vehicle_ids(bookings, now)
