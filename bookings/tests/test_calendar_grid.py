from django.test import SimpleTestCase

from bookings.services.calendar_grid import (
    clip_to_month,
    current_month,
    days_in_month,
    next_month,
    previous_month,
    project,
)
from bookings.tests.factories import at, booking, vehicle


class MonthNavigationTests(SimpleTestCase):
    def test_rollover(self):
        self.assertEqual(previous_month(2024, 1), (2023, 12))
        self.assertEqual(previous_month(2024, 7), (2024, 6))
        self.assertEqual(next_month(2024, 12), (2025, 1))
        self.assertEqual(next_month(2024, 2), (2024, 3))

    def test_current_month_from_clock(self):
        self.assertEqual(current_month(at(2024, 2, 29, 23, 30)), (2024, 2))

    def test_days_in_month(self):
        self.assertEqual(days_in_month(2024, 2), 29)
        self.assertEqual(days_in_month(2023, 2), 28)
        self.assertEqual(days_in_month(2024, 4), 30)


class ClipTests(SimpleTestCase):
    def test_booking_spanning_two_months(self):
        start, end = at(2024, 1, 28), at(2024, 2, 3)
        self.assertEqual(clip_to_month(start, end, 2024, 1), (28, 31))
        self.assertEqual(clip_to_month(start, end, 2024, 2), (1, 3))
        self.assertIsNone(clip_to_month(start, end, 2024, 3))
        self.assertIsNone(clip_to_month(start, end, 2023, 12))

    def test_booking_covering_whole_month(self):
        self.assertEqual(clip_to_month(at(2024, 1, 15), at(2024, 3, 2), 2024, 2), (1, 29))

    def test_booking_ending_at_month_start_is_excluded(self):
        self.assertIsNone(clip_to_month(at(2024, 1, 30), at(2024, 2, 1), 2024, 2))
        self.assertEqual(clip_to_month(at(2024, 1, 30), at(2024, 2, 1), 2024, 1), (30, 31))


class ProjectTests(SimpleTestCase):
    def setUp(self):
        self.vans = [vehicle(1), vehicle(2, "2CD3456")]
        self.bookings = [
            booking("b", 1, at(2024, 1, 20, 9), at(2024, 1, 22, 9)),
            booking("a", 1, at(2024, 1, 5, 8), at(2024, 1, 5, 12)),
            booking("c", 2, at(2024, 1, 28), at(2024, 2, 3)),
            booking("d", 2, at(2024, 3, 1), at(2024, 3, 2)),
            booking("orphan", 99, at(2024, 1, 10), at(2024, 1, 11)),
        ]

    def test_rows_follow_vehicle_order_with_sorted_spans(self):
        grid = project(self.vans, self.bookings, 2024, 1, now=at(2024, 6, 1))
        self.assertEqual(grid.days_in_month, 31)
        self.assertEqual([row.vehicle.id for row in grid.rows], [1, 2])
        first, second = grid.rows
        self.assertEqual([(s.booking.id, s.start_day, s.end_day) for s in first.spans], [("a", 5, 5), ("b", 20, 22)])
        self.assertEqual([(s.booking.id, s.start_day, s.end_day) for s in second.spans], [("c", 28, 31)])

    def test_unknown_vehicle_bookings_are_omitted(self):
        grid = project(self.vans, self.bookings, 2024, 1, now=at(2024, 6, 1))
        ids = [span.booking.id for row in grid.rows for span in row.spans]
        self.assertNotIn("orphan", ids)

    def test_today_only_in_current_month(self):
        self.assertEqual(project(self.vans, [], 2024, 1, now=at(2024, 1, 17, 15)).today, 17)
        self.assertIsNone(project(self.vans, [], 2024, 2, now=at(2024, 1, 17, 15)).today)
        self.assertIsNone(project(self.vans, [], 2023, 1, now=at(2024, 1, 17, 15)).today)

    def test_vehicle_without_bookings_has_empty_row(self):
        grid = project(self.vans, self.bookings, 2024, 2, now=at(2024, 6, 1))
        self.assertEqual([(s.start_day, s.end_day) for s in grid.rows[1].spans], [(1, 3)])
        self.assertEqual(grid.rows[0].spans, [])

    def test_is_idempotent(self):
        now = at(2024, 1, 10)
        self.assertEqual(
            project(self.vans, self.bookings, 2024, 1, now=now),
            project(self.vans, self.bookings, 2024, 1, now=now),
        )
