"""
Vehicle availability over half-open ``[start, end)`` windows.

Every stored rental of a vehicle blocks its window, whatever its status:
the stored interval is trusted, not the derived label.
"""

from datetime import datetime
from typing import Iterable


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Touching endpoints do not overlap."""
    return start < other_end and end > other_start


def conflicting_bookings(
    vehicle_id,
    start: datetime,
    end: datetime,
    bookings: Iterable,
    ignore_booking_id=None,
) -> list:
    """Return the bookings of ``vehicle_id`` whose window overlaps ``[start, end)``."""
    conflicts = []
    for booking in bookings:
        if booking.vehicle_id != vehicle_id:
            continue
        if ignore_booking_id is not None and booking.id == ignore_booking_id:
            continue
        if overlaps(start, end, booking.start, booking.end):
            conflicts.append(booking)
    return conflicts


def is_available(
    vehicle_id,
    start: datetime | None,
    end: datetime | None,
    bookings: Iterable,
    ignore_booking_id=None,
) -> bool:
    """
    Return True when no booking of the vehicle overlaps ``[start, end)``.

    An empty or inverted window is never available.
    """
    if not start or not end or start >= end:
        return False
    return not conflicting_bookings(vehicle_id, start, end, bookings, ignore_booking_id)


def unavailable_vehicle_ids(
    start: datetime | None,
    end: datetime | None,
    bookings: Iterable,
    vehicles: Iterable,
) -> set:
    """Ids of vehicles that cannot be offered for ``[start, end)`` in a picker."""
    vehicle_ids = [vehicle.id for vehicle in vehicles]
    if not start or not end or start >= end:
        return set(vehicle_ids)

    bookings = list(bookings)
    return {vid for vid in vehicle_ids if not is_available(vid, start, end, bookings)}
