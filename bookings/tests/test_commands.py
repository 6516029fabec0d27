import tempfile
from io import StringIO
from pathlib import Path
from unittest.mock import patch

from django.core.management import CommandError, call_command
from django.test import TestCase

from bookings.models import Rental
from bookings.services.booking import create_booking
from bookings.services.status import COMPLETED, UPCOMING
from bookings.tests.factories import at, make_customer, make_vehicle


class RefreshRentalStatusTests(TestCase):
    def setUp(self):
        with patch("bookings.services.status.timezone.now", return_value=at(2024, 1, 1)):
            self.rental = create_booking(make_vehicle(), make_customer(), at(2024, 2, 1, 8), at(2024, 2, 2, 8))

    def test_dry_run_reports_without_saving(self):
        out = StringIO()
        call_command("refresh_rental_status", "--dry-run", stdout=out)
        self.assertIn("Would update 1 rental status(es).", out.getvalue())
        self.assertEqual(Rental.objects.get().status, UPCOMING)

    def test_updates_stale_status(self):
        out = StringIO()
        call_command("refresh_rental_status", stdout=out)
        self.assertIn("Updated 1 rental status(es).", out.getvalue())
        self.assertEqual(Rental.objects.get().status, COMPLETED)


class ImportVehiclesFileTests(TestCase):
    def test_imports_csv(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "fleet.csv"
            path.write_text("license_plate,brand,year,daily\n8LM9012,Opel Movano,2021,1200\n,Fiat Ducato,2020,1\n", "utf-8")
            out = StringIO()
            call_command("import_vehicles_file", str(path), stdout=out)

        self.assertIn("Imported vehicles: 1", out.getvalue())
        self.assertIn("Skipped rows (missing or invalid fields): 1", out.getvalue())

    def test_missing_file(self):
        with self.assertRaises(CommandError):
            call_command("import_vehicles_file", "/nonexistent/fleet.csv")
