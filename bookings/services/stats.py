from datetime import date, datetime, timedelta

from django.conf import settings
from django.db.models import Case, Count, DecimalField, Q, Sum, When
from django.db.models.functions import TruncMonth
from django.utils import timezone

from ..models import Rental, Vehicle
from .status import ACTIVE, COMPLETED, UPCOMING, local_time, returning_today


def status_q(status: str, now: datetime) -> Q:
    """Database filter equivalent to classify() for the given status."""
    if status == UPCOMING:
        return Q(start__gt=now)
    if status == ACTIVE:
        return Q(start__lte=now, end__gt=now)
    if status == COMPLETED:
        return Q(end__lte=now)
    raise ValueError(f"Unknown rental status: {status}")


def rentals_summary(now: datetime | None = None):
    """Basic counts and revenue summary for the dashboard."""
    now = now or timezone.now()

    total_rentals = Rental.objects.count()
    active_rentals = Rental.objects.filter(status_q(ACTIVE, now)).count()
    upcoming_rentals = Rental.objects.filter(status_q(UPCOMING, now)).count()
    completed_rentals = Rental.objects.filter(status_q(COMPLETED, now)).count()
    total_revenue = Rental.objects.aggregate(total=Sum("total_price")).get("total") or 0

    return {
        "total_rentals": total_rentals,
        "active_rentals": active_rentals,
        "upcoming_rentals": upcoming_rentals,
        "completed_rentals": completed_rentals,
        "total_revenue": total_revenue,
    }


def vehicle_revenue():
    """Number of rentals and booked revenue per vehicle, best earners first."""
    qs = (
        Rental.objects.values("vehicle_id", "vehicle__license_plate", "vehicle__brand")
        .annotate(num_rentals=Count("id"), revenue=Sum("total_price"))
        .order_by("-revenue", "vehicle__license_plate")
    )
    return list(qs)


def monthly_rental_performance(months=6, now: datetime | None = None):
    """
    Return month-by-month booking counts and revenue for the dashboard charts.

    Rentals are attributed to the month they start in. Revenue only counts
    rentals that have already ended. The series always includes the requested
    number of months, filling missing months with zeros.
    """

    def _add_months(dt: date, months_delta: int) -> date:
        month_index = dt.month - 1 + months_delta
        year = dt.year + month_index // 12
        month = month_index % 12 + 1
        return date(year, month, 1)

    now = now or timezone.now()
    months = max(1, months)
    today = local_time(now).date()
    current_month = date(today.year, today.month, 1)
    window_start = _add_months(current_month, -(months - 1))
    window_start_at = timezone.make_aware(datetime(window_start.year, window_start.month, 1))

    aggregates = (
        Rental.objects.filter(start__gte=window_start_at)
        .annotate(month=TruncMonth("start"))
        .values("month")
        .annotate(
            count=Count("id"),
            revenue=Sum(
                Case(
                    When(end__lte=now, then="total_price"),
                    default=0,
                    output_field=DecimalField(max_digits=10, decimal_places=2),
                )
            ),
        )
        .order_by("month")
    )

    by_month = {}
    for row in aggregates:
        month_value = row["month"].date() if hasattr(row["month"], "date") else row["month"]
        by_month[month_value] = {
            "count": row.get("count", 0),
            "revenue": row.get("revenue") or 0,
        }

    timeline = []
    for idx in range(months):
        month_point = _add_months(window_start, idx)
        row = by_month.get(month_point, {"count": 0, "revenue": 0})
        timeline.append(
            {
                "month": month_point,
                "label": month_point.strftime("%m/%Y"),
                "count": row["count"],
                "revenue": row["revenue"],
            }
        )

    return timeline


def rental_status_breakdown(now: datetime | None = None):
    """Return counts per derived rental status keyed by the status code."""
    now = now or timezone.now()
    return {code: Rental.objects.filter(status_q(code, now)).count() for code, _ in Rental.STATUS_CHOICES}


def attention_items(now: datetime | None = None, window_days: int | None = None):
    """
    Vehicles and rentals that need the operator's attention:
    inspections and toll stickers expiring soon, vans due back today.
    """
    now = now or timezone.now()
    if window_days is None:
        window_days = settings.ATTENTION_WINDOW_DAYS
    today = local_time(now).date()
    horizon = today + timedelta(days=window_days)

    stk_soon = Vehicle.objects.filter(stk_date__gte=today, stk_date__lte=horizon).order_by("stk_date")
    vignette_soon = Vehicle.objects.filter(vignette_until__gte=today, vignette_until__lte=horizon).order_by(
        "vignette_until"
    )
    day_start = timezone.make_aware(datetime(today.year, today.month, today.day))
    candidates = Rental.objects.select_related("vehicle", "customer").filter(
        end__gte=day_start, end__lt=day_start + timedelta(days=2)
    )

    return {
        "stk_soon": list(stk_soon),
        "vignette_soon": list(vignette_soon),
        "returning_today": returning_today(candidates, now),
    }
