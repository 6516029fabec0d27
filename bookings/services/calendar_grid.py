"""
Month grid for the booking calendar.

Bookings are placed on a per-vehicle row as inclusive day-of-month spans,
clipped to the displayed month. All comparisons happen in local wall-clock
time so that day columns match what the operator sees.
"""

import calendar
from datetime import datetime, timedelta
from typing import Iterable, NamedTuple

from django.utils import timezone

from .availability import overlaps
from .status import local_time


class CalendarSpan(NamedTuple):
    booking: object
    start_day: int
    end_day: int


class VehicleRow(NamedTuple):
    vehicle: object
    spans: list


class CalendarMonth(NamedTuple):
    year: int
    month: int
    days_in_month: int
    today: int | None
    rows: list


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def current_month(now: datetime | None = None) -> tuple[int, int]:
    now = local_time(now or timezone.now())
    return now.year, now.month


def _wall(value: datetime) -> datetime:
    return local_time(value).replace(tzinfo=None)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """Return the first instant of the month and the first instant of the next one."""
    following = next_month(year, month)
    return datetime(year, month, 1), datetime(following[0], following[1], 1)


def clip_to_month(start: datetime, end: datetime, year: int, month: int) -> tuple[int, int] | None:
    """
    Clip ``[start, end)`` to the month and return the covered day columns.

    Returns None when the window does not touch the month. The end column is
    the day of the clipped end instant, so a window ending at midnight still
    shows on that day.
    """
    first, following = month_bounds(year, month)
    start, end = _wall(start), _wall(end)
    if not overlaps(start, end, first, following):
        return None

    last_instant = following - timedelta(microseconds=1)
    effective_start = max(start, first)
    effective_end = min(end, last_instant)
    return effective_start.day, effective_end.day


def project(vehicles: Iterable, bookings: Iterable, year: int, month: int, now: datetime | None = None) -> CalendarMonth:
    """
    Place each vehicle's bookings on the grid of the given month.

    Rows follow the order of ``vehicles``. Bookings that do not intersect the
    month, and bookings whose vehicle is not in ``vehicles``, are left out.
    """
    total_days = days_in_month(year, month)
    vehicles = list(vehicles)
    spans_by_vehicle = {vehicle.id: [] for vehicle in vehicles}

    for booking in sorted(bookings, key=lambda item: item.start):
        spans = spans_by_vehicle.get(booking.vehicle_id)
        if spans is None:
            continue
        days = clip_to_month(booking.start, booking.end, year, month)
        if days is None:
            continue
        spans.append(CalendarSpan(booking, days[0], days[1]))

    local_now = local_time(now or timezone.now())
    today = local_now.day if (local_now.year, local_now.month) == (year, month) else None

    rows = [VehicleRow(vehicle, spans_by_vehicle[vehicle.id]) for vehicle in vehicles]
    return CalendarMonth(year, month, total_days, today, rows)
