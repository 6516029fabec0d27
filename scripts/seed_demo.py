"""
Quick demo seeding for the booking calendar and payment payloads.

Run:
    python manage.py shell < scripts/seed_demo.py
"""

from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from bookings.models import Customer, Rental, Vehicle
from bookings.services.booking import create_booking


def main():
    van, _ = Vehicle.objects.get_or_create(
        license_plate="1AB2345",
        defaults={
            "brand": "Renault Master",
            "vin": "VF1MA000000000001",
            "year": 2021,
            "rate_4h": Decimal("900.00"),
            "rate_6h": Decimal("1200.00"),
            "rate_12h": Decimal("1500.00"),
            "rate_24h": Decimal("1900.00"),
            "daily_rate": Decimal("1700.00"),
        },
    )

    customer, _ = Customer.objects.get_or_create(
        email="demo@example.com",
        defaults={
            "first_name": "Demo",
            "last_name": "Driver",
            "phone": "+420 777 000 111",
            "drivers_license_number": "EF123456",
        },
    )

    start = timezone.now().replace(minute=0, second=0, microsecond=0) + timedelta(days=1)
    end = start + timedelta(days=3)
    rental = Rental.objects.filter(vehicle=van, start=start, end=end).first()
    if rental is None:
        rental = create_booking(van, customer, start, end)

    print("Seeded demo data:")
    print(f"- Vehicle: {van}")
    print(f"- Customer: {customer}")
    print(f"- Rental: {rental} ({rental.total_price})")


main()
