import logging
from datetime import datetime
from decimal import Decimal

from django.db import transaction

from ..models import Customer, Rental, Vehicle
from .availability import conflicting_bookings
from .pricing import quote_rental

logger = logging.getLogger(__name__)


class BookingError(ValueError):
    """A rental could not be committed."""


class InvalidBookingWindow(BookingError):
    pass


class BookingConflict(BookingError):
    def __init__(self, vehicle, conflicts):
        self.vehicle = vehicle
        self.conflicts = list(conflicts)
        super().__init__(f"Vehicle {vehicle.license_plate} is already booked for the requested time.")


def vehicle_bookings(vehicle_id, start: datetime, end: datetime):
    """Stored rentals of a vehicle that could overlap ``[start, end)``."""
    return Rental.objects.filter(vehicle_id=vehicle_id, start__lt=end, end__gt=start)


@transaction.atomic
def save_booking(rental: Rental) -> Rental:
    """
    Persist a new or edited rental after re-checking its vehicle's calendar.

    The vehicle row is locked for the rest of the transaction so concurrent
    requests for the same vehicle are serialised. A rental without a price
    gets the rate-card suggestion.

    Raises:
        InvalidBookingWindow: if ``end`` is not after ``start``.
        BookingConflict: if another rental of the vehicle overlaps the window.
    """
    start, end = rental.start, rental.end
    if not start or not end or end <= start:
        raise InvalidBookingWindow("Rental end must be after its start.")

    locked_vehicle = Vehicle.objects.select_for_update().get(pk=rental.vehicle_id)
    ignore_id = None if rental._state.adding else rental.pk
    conflicts = conflicting_bookings(
        locked_vehicle.id, start, end, vehicle_bookings(locked_vehicle.id, start, end), ignore_booking_id=ignore_id
    )
    if conflicts:
        logger.warning(
            "Rejected rental for %s: %d conflicting booking(s)",
            locked_vehicle.license_plate,
            len(conflicts),
        )
        raise BookingConflict(locked_vehicle, conflicts)

    if rental.total_price is None:
        rental.total_price = quote_rental(locked_vehicle, start, end).total

    adding = rental._state.adding
    rental.vehicle = locked_vehicle
    rental.save()
    logger.info(
        "%s rental %s for %s (%s - %s, %s)",
        "Created" if adding else "Updated",
        rental.id,
        locked_vehicle.license_plate,
        start.isoformat(),
        end.isoformat(),
        rental.total_price,
    )
    return rental


def create_booking(
    vehicle: Vehicle,
    customer: Customer,
    start: datetime,
    end: datetime,
    total_price: Decimal | None = None,
    created_by=None,
) -> Rental:
    """
    Commit a new rental. When ``total_price`` is None the rate-card
    suggestion is used; otherwise the operator's value is stored as given.
    """
    rental = Rental(
        vehicle=vehicle,
        customer=customer,
        start=start,
        end=end,
        total_price=total_price,
        created_by=created_by,
    )
    return save_booking(rental)
