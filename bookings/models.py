import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.validators import MinValueValidator
from django.db import models

from .services.pricing import RateCard
from .services.status import ACTIVE, COMPLETED, UPCOMING, classify

User = get_user_model()

NON_NEGATIVE = [MinValueValidator(Decimal("0.00"))]


class Vehicle(models.Model):
    BRAND_CHOICES = [
        ("Renault Master", "Renault Master"),
        ("Opel Movano", "Opel Movano"),
        ("Fiat Ducato", "Fiat Ducato"),
        ("Peugeot Boxer", "Peugeot Boxer"),
        ("Mercedes Sprinter", "Mercedes Sprinter"),
    ]

    brand = models.CharField(max_length=30, choices=BRAND_CHOICES, default="Renault Master")
    license_plate = models.CharField(max_length=20, unique=True)
    vin = models.CharField(max_length=50, blank=True, default="", help_text="VIN / číslo karoserie.")
    year = models.PositiveIntegerField()
    last_service_date = models.DateField(blank=True, null=True)
    last_service_cost = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True,
        validators=NON_NEGATIVE,
    )
    stk_date = models.DateField(blank=True, null=True, help_text="Next technical inspection (STK) due.")
    insurance_info = models.TextField(blank=True, null=True)
    vignette_until = models.DateField(blank=True, null=True, help_text="Road-toll sticker valid until.")
    rate_4h = models.DecimalField(
        max_digits=9,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=NON_NEGATIVE,
        help_text="Flat price for rentals up to 4 hours.",
    )
    rate_6h = models.DecimalField(
        max_digits=9,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=NON_NEGATIVE,
        help_text="Flat price for rentals up to 6 hours.",
    )
    rate_12h = models.DecimalField(
        max_digits=9,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=NON_NEGATIVE,
        help_text="Flat price for rentals up to 12 hours.",
    )
    rate_24h = models.DecimalField(
        max_digits=9,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=NON_NEGATIVE,
        help_text="Flat price for rentals up to 24 hours.",
    )
    daily_rate = models.DecimalField(
        max_digits=9,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=NON_NEGATIVE,
        help_text="Per-day price for rentals longer than 24 hours (days rounded up).",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["brand", "license_plate"]

    def __str__(self):
        return f"{self.brand} ({self.license_plate})"

    @property
    def rate_card(self) -> RateCard:
        return RateCard(
            four_hour=self.rate_4h,
            six_hour=self.rate_6h,
            twelve_hour=self.rate_12h,
            twenty_four_hour=self.rate_24h,
            daily=self.daily_rate,
        )


class Customer(models.Model):
    first_name = models.CharField(max_length=60)
    last_name = models.CharField(max_length=60)
    email = models.EmailField()
    phone = models.CharField(max_length=30, blank=True, null=True)
    id_card_number = models.CharField(max_length=30, blank=True, null=True)
    drivers_license_number = models.CharField(max_length=30, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["last_name", "first_name", "id"]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Rental(models.Model):
    STATUS_CHOICES = [
        (UPCOMING, "Upcoming"),
        (ACTIVE, "Active"),
        (COMPLETED, "Completed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name="rentals")
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="rentals")
    start = models.DateTimeField()
    end = models.DateTimeField(help_text="Exclusive: the vehicle is free again from this instant.")
    total_price = models.DecimalField(max_digits=10, decimal_places=2, validators=NON_NEGATIVE)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=UPCOMING,
        editable=False,
        help_text="Cached from the clock on every save; use current_status for display.",
    )
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-start"]
        indexes = [models.Index(fields=["vehicle", "start", "end"], name="rental_vehicle_window_idx")]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end__gt=models.F("start")),
                name="rental_end_after_start",
            ),
        ]

    def __str__(self):
        return self.deal_name

    @property
    def current_status(self) -> str:
        return classify(self)

    @property
    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600

    @property
    def deal_name(self) -> str:
        """
        Human-friendly deal name: {short id}/{last name}/{plate}/{start date}
        """
        last_name = self.customer.last_name if self.customer_id else "-"
        plate = self.vehicle.license_plate if self.vehicle_id else ""
        date_piece = self.start.strftime("%Y-%m-%d") if self.start else ""
        return f"{str(self.id)[:5]}/{last_name}/{plate}/{date_piece}"

    def refresh_status(self, now=None) -> bool:
        """Recompute the cached status; return True when it changed."""
        derived = classify(self, now)
        changed = derived != self.status
        self.status = derived
        return changed

    def save(self, *args, **kwargs):
        if self.start and self.end:
            self.refresh_status()
            update_fields = kwargs.get("update_fields")
            if update_fields is not None and "status" not in update_fields:
                kwargs["update_fields"] = [*update_fields, "status"]
        return super().save(*args, **kwargs)
