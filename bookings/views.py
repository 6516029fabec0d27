import csv
import logging

from django import forms
from django.conf import settings
from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.db.models import Q
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.encoding import smart_str
from django.views.decorators.http import require_GET, require_POST

from .forms import RentalForm
from .importers import import_vehicle_rows, load_rows
from .models import Customer, Rental, Vehicle
from .services.availability import unavailable_vehicle_ids
from .services.booking import BookingConflict, BookingError, create_booking, vehicle_bookings
from .services.calendar_grid import current_month, next_month, previous_month, project
from .services.payment import build_payment_payload
from .services.pricing import quote_rental
from .services.stats import (
    attention_items,
    monthly_rental_performance,
    rental_status_breakdown,
    rentals_summary,
    vehicle_revenue,
)
from .services.status import classify, rented_vehicle_ids

logger = logging.getLogger(__name__)


def _parse_datetime(value):
    """Parse a timestamp query parameter the way the rental form does; naive values use the current timezone."""
    try:
        return forms.DateTimeField(required=False).clean(value)
    except ValidationError:
        return None


def _parse_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _bad_request(message: str, status: int = 400):
    return JsonResponse({"error": message}, status=status)


def _iso(value):
    return timezone.localtime(value).isoformat() if value else None


def _serialize_vehicle(vehicle: Vehicle):
    return {
        "id": vehicle.id,
        "label": str(vehicle),
        "brand": vehicle.brand,
        "license_plate": vehicle.license_plate,
    }


def _serialize_rental(rental: Rental, now=None):
    return {
        "id": str(rental.id),
        "vehicle_id": rental.vehicle_id,
        "customer_id": rental.customer_id,
        "customer_name": rental.customer.full_name if rental.customer_id else "",
        "start": _iso(rental.start),
        "end": _iso(rental.end),
        "total_price": f"{rental.total_price:.2f}",
        "status": classify(rental, now),
    }


@login_required
@require_GET
def dashboard(request):
    now = timezone.now()
    summary = rentals_summary(now)
    revenue = vehicle_revenue()[:5]
    monthly_trend = monthly_rental_performance(now=now)
    status_counts = rental_status_breakdown(now)
    attention = attention_items(now)

    payload = {
        "vehicles_count": Vehicle.objects.count(),
        "customers_count": Customer.objects.count(),
        **{key: value if isinstance(value, int) else float(value) for key, value in summary.items()},
        "status": status_counts,
        "trend": {
            "labels": [item["label"] for item in monthly_trend],
            "revenue": [float(item["revenue"] or 0) for item in monthly_trend],
            "counts": [item["count"] for item in monthly_trend],
        },
        "top_vehicles": [
            {
                "label": f"{row['vehicle__brand']} ({row['vehicle__license_plate']})",
                "revenue": float(row.get("revenue") or 0),
                "count": row.get("num_rentals", 0),
            }
            for row in revenue
        ],
        "attention": {
            "stk_soon": [
                {**_serialize_vehicle(vehicle), "date": vehicle.stk_date.isoformat()}
                for vehicle in attention["stk_soon"]
            ],
            "vignette_soon": [
                {**_serialize_vehicle(vehicle), "date": vehicle.vignette_until.isoformat()}
                for vehicle in attention["vignette_soon"]
            ],
            "returning_today": [_serialize_rental(rental, now) for rental in attention["returning_today"]],
        },
    }
    return JsonResponse(payload)


@login_required
@require_GET
def vehicle_availability(request):
    """Vehicle picker data: every vehicle with a flag telling whether it can be booked."""
    start = _parse_datetime(request.GET.get("start"))
    end = _parse_datetime(request.GET.get("end"))
    if not start or not end:
        return _bad_request("Both start and end are required.")

    vehicles = list(Vehicle.objects.all())
    bookings = Rental.objects.filter(start__lt=end, end__gt=start) if start < end else Rental.objects.none()
    blocked = unavailable_vehicle_ids(start, end, bookings, vehicles)
    now = timezone.now()
    rented = rented_vehicle_ids(Rental.objects.filter(start__lte=now, end__gt=now), now)

    results = [
        {**_serialize_vehicle(vehicle), "available": vehicle.id not in blocked, "rented": vehicle.id in rented}
        for vehicle in vehicles
    ]
    return JsonResponse({"results": results, "valid_window": start < end})


@login_required
@require_GET
def price_quote(request):
    vehicle_id = _parse_int(request.GET.get("vehicle"))
    if vehicle_id is None:
        return _bad_request("A vehicle id is required.")
    vehicle = get_object_or_404(Vehicle, pk=vehicle_id)
    start = _parse_datetime(request.GET.get("start"))
    end = _parse_datetime(request.GET.get("end"))

    quote = quote_rental(vehicle, start, end)
    return JsonResponse(
        {
            "vehicle_id": vehicle.id,
            "hours": round(quote.hours, 4),
            "tier": quote.tier,
            "total": f"{quote.total:.2f}",
        }
    )


@login_required
@require_GET
def calendar_month(request):
    now = timezone.now()
    default_year, default_month = current_month(now)
    year = _parse_int(request.GET.get("year"), default_year)
    month = _parse_int(request.GET.get("month"), default_month)
    if not 1 <= month <= 12 or not 1 <= year <= 9998:
        return _bad_request("Invalid month.")

    vehicles = Vehicle.objects.all()
    bookings = Rental.objects.select_related("customer")
    grid = project(vehicles, bookings, year, month, now=now)

    prev_year, prev_month = previous_month(year, month)
    following_year, following_month = next_month(year, month)
    return JsonResponse(
        {
            "year": grid.year,
            "month": grid.month,
            "days_in_month": grid.days_in_month,
            "today": grid.today,
            "previous": {"year": prev_year, "month": prev_month},
            "next": {"year": following_year, "month": following_month},
            "current": {"year": default_year, "month": default_month},
            "rows": [
                {
                    "vehicle": _serialize_vehicle(row.vehicle),
                    "spans": [
                        {
                            "start_day": span.start_day,
                            "end_day": span.end_day,
                            "rental": _serialize_rental(span.booking, now),
                        }
                        for span in row.spans
                    ],
                }
                for row in grid.rows
            ],
        }
    )


@login_required
@require_POST
def rental_create(request):
    form = RentalForm(request.POST)
    if not form.is_valid():
        return JsonResponse({"errors": form.errors.get_json_data()}, status=400)

    data = form.cleaned_data
    try:
        rental = create_booking(
            data["vehicle"],
            data["customer"],
            data["start"],
            data["end"],
            total_price=data["total_price"],
            created_by=request.user,
        )
    except BookingConflict as exc:
        return JsonResponse({"error": str(exc)}, status=409)
    except BookingError as exc:
        return _bad_request(str(exc))
    except DatabaseError:
        logger.exception("Failed to store rental", extra={"vehicle_id": data["vehicle"].pk})
        return JsonResponse({"error": "Could not save the rental, please try again."}, status=500)

    payload = _serialize_rental(rental)
    if form.quote is not None:
        payload["suggested_price"] = f"{form.quote.total:.2f}"
    return JsonResponse(payload, status=201)


@login_required
@require_GET
def rental_payment(request, pk):
    rental = get_object_or_404(Rental.objects.select_related("vehicle"), pk=pk)
    payload = build_payment_payload(rental, rental.vehicle, settings.BANK_ACCOUNT_NUMBER)
    if payload is None or not payload.account:
        return JsonResponse({"error": "Payment details are not available for this rental."}, status=404)
    return JsonResponse(payload._asdict())


@login_required
@require_GET
def vehicle_rentals(request, pk):
    """Stored rentals of one vehicle overlapping an optional window."""
    vehicle = get_object_or_404(Vehicle, pk=pk)
    start = _parse_datetime(request.GET.get("start"))
    end = _parse_datetime(request.GET.get("end"))
    if start and end:
        rentals = vehicle_bookings(vehicle.id, start, end)
    else:
        rentals = vehicle.rentals.all()
    rentals = rentals.select_related("customer").order_by("start")
    now = timezone.now()
    return JsonResponse({"vehicle": _serialize_vehicle(vehicle), "results": [_serialize_rental(r, now) for r in rentals]})


@login_required
def customer_search(request):
    """
    Lightweight lookup endpoint for customer search. Returns a small JSON payload
    with the matching customers to power the selector on the rental form.
    """

    term = (request.GET.get("q") or "").strip()
    limit = _parse_int(request.GET.get("limit", 15), 15)
    limit = max(1, min(limit, 50))

    if not term:
        return JsonResponse({"results": []})

    matches = Customer.objects.all()
    for part in term.split():
        matches = matches.filter(
            Q(first_name__icontains=part)
            | Q(last_name__icontains=part)
            | Q(email__icontains=part)
            | Q(phone__icontains=part)
            | Q(drivers_license_number__icontains=part)
            | Q(id_card_number__icontains=part)
        )
    matches = matches.order_by("last_name", "first_name").distinct()[:limit]

    results = []
    for customer in matches:
        phone = customer.phone or ""
        label = f"{customer.full_name}{f' · {phone}' if phone else ''}"
        results.append(
            {
                "id": customer.id,
                "name": customer.full_name,
                "email": customer.email,
                "phone": phone,
                "label": label,
            }
        )
    return JsonResponse({"results": results})


@login_required
@require_POST
def import_vehicles(request):
    upload = request.FILES.get("file")
    if not upload:
        return _bad_request("Please choose a CSV or Excel file to upload.")

    try:
        rows = load_rows(upload)
    except Exception as exc:  # noqa: BLE001 - present message to user
        logger.exception("Vehicle import: failed to read file %s", upload.name)
        return _bad_request(f"Could not read file: {exc}")

    if not rows:
        return _bad_request("File is empty or missing rows.")

    imported, skipped = import_vehicle_rows(rows)
    return JsonResponse({"imported": imported, "skipped": skipped})


@login_required
def export_rentals_csv(request):
    response = HttpResponse(content_type="text/csv")
    response["Content-Disposition"] = 'attachment; filename="rentals.csv"'

    writer = csv.writer(response)
    writer.writerow(
        [
            "id",
            "license_plate",
            "customer_name",
            "customer_email",
            "start",
            "end",
            "total_price",
            "status",
        ]
    )

    now = timezone.now()
    for rental in Rental.objects.select_related("vehicle", "customer").order_by("start"):
        writer.writerow(
            [
                str(rental.id),
                smart_str(rental.vehicle.license_plate),
                smart_str(rental.customer.full_name),
                smart_str(rental.customer.email),
                _iso(rental.start),
                _iso(rental.end),
                rental.total_price,
                classify(rental, now),
            ]
        )

    return response
