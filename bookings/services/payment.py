import re
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

MESSAGE_TAG = "PRONAJEM"
REFERENCE_MAX_DIGITS = 10


class PaymentPayload(NamedTuple):
    amount: str
    account: str
    reference: str
    message: str


def format_amount(value) -> str:
    number = Decimal(str(value)) if not isinstance(value, Decimal) else value
    return f"{number.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):.2f}"


def clean_account(value: str | None) -> str:
    return re.sub(r"\s+", "", value or "")


def payment_reference(booking_id) -> str:
    """Digits of the booking id, in order, capped at 10 (never padded)."""
    return re.sub(r"[^0-9]", "", str(booking_id))[:REFERENCE_MAX_DIGITS]


def payment_message(license_plate: str) -> str:
    return f"{MESSAGE_TAG}-{license_plate}"


def build_payment_payload(booking, vehicle, bank_account: str | None) -> PaymentPayload | None:
    """
    Derive the fields shown with the payment code for a saved rental.

    The amount restates the frozen rental price. Returns None when the rental's
    vehicle is not available, so callers can skip the payment block.
    """
    if vehicle is None or vehicle.id != booking.vehicle_id:
        return None
    return PaymentPayload(
        amount=format_amount(booking.total_price),
        account=clean_account(bank_account),
        reference=payment_reference(booking.id),
        message=payment_message(vehicle.license_plate),
    )
