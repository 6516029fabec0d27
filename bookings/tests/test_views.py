import csv
from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from bookings.models import Rental
from bookings.services.booking import create_booking
from bookings.tests.factories import at, make_customer, make_vehicle

QUERY_DT = "%Y-%m-%dT%H:%M"


class ViewTestCase(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="tester", password="pass")
        self.client.force_login(self.user)
        self.van = make_vehicle("1AB2345")
        self.other_van = make_vehicle("2CD3456", brand="Opel Movano")
        self.customer = make_customer()


class AvailabilityViewTests(ViewTestCase):
    def test_marks_booked_vehicle_unavailable(self):
        start = at(2030, 3, 10, 8)
        create_booking(self.van, self.customer, start, start + timedelta(days=2))
        response = self.client.get(
            reverse("bookings:vehicle_availability"),
            {"start": (start + timedelta(hours=1)).strftime(QUERY_DT), "end": (start + timedelta(hours=5)).strftime(QUERY_DT)},
        )
        payload = response.json()
        flags = {item["license_plate"]: item["available"] for item in payload["results"]}
        self.assertEqual(flags, {"1AB2345": False, "2CD3456": True})
        self.assertTrue(payload["valid_window"])

    def test_reports_vehicles_out_right_now(self):
        now = timezone.now()
        create_booking(self.van, self.customer, now - timedelta(hours=1), now + timedelta(hours=1))
        create_booking(self.other_van, self.customer, now + timedelta(days=1), now + timedelta(days=2))
        response = self.client.get(
            reverse("bookings:vehicle_availability"), {"start": "2030-03-10T10:00", "end": "2030-03-10T12:00"}
        )
        rented = {item["license_plate"]: item["rented"] for item in response.json()["results"]}
        self.assertEqual(rented, {"1AB2345": True, "2CD3456": False})

    def test_accepts_local_date_format(self):
        create_booking(self.van, self.customer, at(2030, 3, 10, 8), at(2030, 3, 12, 8))
        response = self.client.get(
            reverse("bookings:vehicle_availability"), {"start": "11.03.2030 08:00", "end": "11.03.2030 10:00"}
        )
        flags = {item["license_plate"]: item["available"] for item in response.json()["results"]}
        self.assertEqual(flags, {"1AB2345": False, "2CD3456": True})

    def test_unparseable_timestamp_is_rejected(self):
        response = self.client.get(
            reverse("bookings:vehicle_availability"), {"start": "tomorrow", "end": "2030-03-10T12:00"}
        )
        self.assertEqual(response.status_code, 400)

    def test_invalid_window_disables_all(self):
        response = self.client.get(
            reverse("bookings:vehicle_availability"), {"start": "2030-03-10T10:00", "end": "2030-03-10T09:00"}
        )
        payload = response.json()
        self.assertFalse(payload["valid_window"])
        self.assertFalse(any(item["available"] for item in payload["results"]))

    def test_missing_parameters_are_rejected(self):
        response = self.client.get(reverse("bookings:vehicle_availability"), {"start": "2030-03-10T10:00"})
        self.assertEqual(response.status_code, 400)

    def test_requires_login(self):
        self.client.logout()
        response = self.client.get(reverse("bookings:vehicle_availability"))
        self.assertEqual(response.status_code, 302)


class QuoteViewTests(ViewTestCase):
    def test_quote_for_daily_tier(self):
        response = self.client.get(
            reverse("bookings:price_quote"),
            {"vehicle": self.van.pk, "start": "2030-03-10T08:00", "end": "2030-03-11T09:00"},
        )
        payload = response.json()
        self.assertEqual(payload["tier"], "daily")
        self.assertEqual(payload["total"], "2000.00")
        self.assertEqual(payload["hours"], 25)

    def test_unknown_vehicle_is_404(self):
        response = self.client.get(reverse("bookings:price_quote"), {"vehicle": 999})
        self.assertEqual(response.status_code, 404)


class RentalCreateViewTests(ViewTestCase):
    def _post(self, start, end, **extra):
        data = {
            "vehicle": self.van.pk,
            "customer": self.customer.pk,
            "start": start,
            "end": end,
        }
        data.update(extra)
        return self.client.post(reverse("bookings:rental_create"), data)

    def test_creates_rental_with_suggested_price(self):
        response = self._post("2030-03-10 08:00", "2030-03-10 11:00")
        self.assertEqual(response.status_code, 201)
        payload = response.json()
        self.assertEqual(payload["total_price"], "800.00")
        self.assertEqual(payload["suggested_price"], "800.00")
        rental = Rental.objects.get()
        self.assertEqual(rental.created_by, self.user)

    def test_override_price(self):
        response = self._post("2030-03-10 08:00", "2030-03-10 11:00", total_price="500")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Rental.objects.get().total_price, Decimal("500.00"))

    def test_conflict_returns_form_error(self):
        self._post("2030-03-10 08:00", "2030-03-12 08:00")
        response = self._post("2030-03-11 08:00", "2030-03-11 10:00")
        self.assertEqual(response.status_code, 400)
        self.assertIn("vehicle", response.json()["errors"])
        self.assertEqual(Rental.objects.count(), 1)

    def test_invalid_window_rejected(self):
        response = self._post("2030-03-10 08:00", "2030-03-10 08:00")
        self.assertEqual(response.status_code, 400)
        self.assertIn("end", response.json()["errors"])


class CalendarViewTests(ViewTestCase):
    def test_month_projection(self):
        create_booking(self.van, self.customer, at(2024, 1, 28), at(2024, 2, 3))
        response = self.client.get(reverse("bookings:calendar_month"), {"year": 2024, "month": 1})
        payload = response.json()
        self.assertEqual(payload["days_in_month"], 31)
        self.assertEqual(payload["previous"], {"year": 2023, "month": 12})
        self.assertEqual(payload["next"], {"year": 2024, "month": 2})
        rows = {row["vehicle"]["license_plate"]: row["spans"] for row in payload["rows"]}
        self.assertEqual([(s["start_day"], s["end_day"]) for s in rows["1AB2345"]], [(28, 31)])
        self.assertEqual(rows["2CD3456"], [])
        self.assertEqual(rows["1AB2345"][0]["rental"]["customer_name"], "Jan Novák")

    def test_defaults_to_current_month(self):
        response = self.client.get(reverse("bookings:calendar_month"))
        payload = response.json()
        now = timezone.localtime()
        self.assertEqual((payload["year"], payload["month"]), (now.year, now.month))
        self.assertEqual(payload["today"], now.day)

    def test_invalid_month(self):
        response = self.client.get(reverse("bookings:calendar_month"), {"year": 2024, "month": 13})
        self.assertEqual(response.status_code, 400)


class PaymentViewTests(ViewTestCase):
    @override_settings(BANK_ACCOUNT_NUMBER="CZ65 0800 0000 1920 0014 5399")
    def test_payload(self):
        rental = create_booking(
            self.van, self.customer, at(2030, 1, 1, 8), at(2030, 1, 1, 10), total_price=Decimal("1234.5")
        )
        response = self.client.get(reverse("bookings:rental_payment", args=[rental.pk]))
        payload = response.json()
        self.assertEqual(payload["amount"], "1234.50")
        self.assertEqual(payload["account"], "CZ6508000000192000145399")
        self.assertEqual(payload["message"], "PRONAJEM-1AB2345")
        expected_reference = "".join(ch for ch in str(rental.pk) if ch.isdigit())[:10]
        self.assertEqual(payload["reference"], expected_reference)

    @override_settings(BANK_ACCOUNT_NUMBER="")
    def test_missing_account_is_404(self):
        rental = create_booking(self.van, self.customer, at(2030, 1, 1, 8), at(2030, 1, 1, 10))
        response = self.client.get(reverse("bookings:rental_payment", args=[rental.pk]))
        self.assertEqual(response.status_code, 404)


class DashboardViewTests(ViewTestCase):
    def test_summary_uses_clock_derived_status(self):
        now = timezone.now()
        create_booking(self.van, self.customer, now - timedelta(days=3), now - timedelta(days=2))
        create_booking(self.van, self.customer, now - timedelta(hours=1), now + timedelta(minutes=1))
        create_booking(self.other_van, self.customer, now + timedelta(days=1), now + timedelta(days=2))
        payload = self.client.get(reverse("bookings:dashboard")).json()
        self.assertEqual(payload["total_rentals"], 3)
        self.assertEqual(payload["status"], {"upcoming": 1, "active": 1, "completed": 1})
        self.assertEqual(payload["vehicles_count"], 2)
        self.assertEqual(len(payload["trend"]["labels"]), 6)


class CustomerSearchTests(ViewTestCase):
    def test_search_matches_name_parts_any_order(self):
        make_customer("ivan@example.com", first_name="Ivan", last_name="Ivanov", phone="79990001122")

        response = self.client.get(reverse("bookings:customer_search"), {"q": "Ivanov Ivan"})
        names = [item["name"] for item in response.json()["results"]]

        self.assertIn("Ivan Ivanov", names)
        self.assertNotIn("Jan Novák", names)

    def test_empty_query(self):
        response = self.client.get(reverse("bookings:customer_search"), {"q": " "})
        self.assertEqual(response.json(), {"results": []})


class ExportViewTests(ViewTestCase):
    def test_csv_contains_derived_status(self):
        create_booking(self.van, self.customer, at(2020, 1, 1, 8), at(2020, 1, 2, 8))
        response = self.client.get(reverse("bookings:export_rentals_csv"))
        rows = list(csv.DictReader(StringIO(response.content.decode("utf-8"))))
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["license_plate"], "1AB2345")
        self.assertEqual(rows[0]["status"], "completed")


class VehicleRentalsViewTests(ViewTestCase):
    def setUp(self):
        super().setUp()
        self.past = create_booking(self.van, self.customer, at(2020, 1, 1, 8), at(2020, 1, 3, 8))
        self.future = create_booking(self.van, self.customer, at(2030, 1, 1, 8), at(2030, 1, 3, 8))
        create_booking(self.other_van, self.customer, at(2030, 1, 1, 8), at(2030, 1, 3, 8))
        self.url = reverse("bookings:vehicle_rentals", args=[self.van.pk])

    def test_window_returns_only_overlapping_rentals(self):
        response = self.client.get(self.url, {"start": "2030-01-03T07:00", "end": "2030-01-05T00:00"})
        payload = response.json()
        self.assertEqual(payload["vehicle"]["license_plate"], "1AB2345")
        self.assertEqual([item["id"] for item in payload["results"]], [str(self.future.pk)])
        self.assertEqual(payload["results"][0]["status"], "upcoming")

    def test_window_touching_the_end_is_excluded(self):
        response = self.client.get(self.url, {"start": "2030-01-03T08:00", "end": "2030-01-04T08:00"})
        self.assertEqual(response.json()["results"], [])

    def test_without_window_lists_all_in_start_order(self):
        payload = self.client.get(self.url).json()
        self.assertEqual([item["id"] for item in payload["results"]], [str(self.past.pk), str(self.future.pk)])
        self.assertEqual([item["status"] for item in payload["results"]], ["completed", "upcoming"])

    def test_unknown_vehicle(self):
        response = self.client.get(reverse("bookings:vehicle_rentals", args=[999]))
        self.assertEqual(response.status_code, 404)
