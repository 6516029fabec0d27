import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=60)),
                ("last_name", models.CharField(max_length=60)),
                ("email", models.EmailField(max_length=254)),
                ("phone", models.CharField(blank=True, max_length=30, null=True)),
                ("id_card_number", models.CharField(blank=True, max_length=30, null=True)),
                ("drivers_license_number", models.CharField(blank=True, max_length=30, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["last_name", "first_name", "id"],
            },
        ),
        migrations.CreateModel(
            name="Vehicle",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "brand",
                    models.CharField(
                        choices=[
                            ("Renault Master", "Renault Master"),
                            ("Opel Movano", "Opel Movano"),
                            ("Fiat Ducato", "Fiat Ducato"),
                            ("Peugeot Boxer", "Peugeot Boxer"),
                            ("Mercedes Sprinter", "Mercedes Sprinter"),
                        ],
                        default="Renault Master",
                        max_length=30,
                    ),
                ),
                ("license_plate", models.CharField(max_length=20, unique=True)),
                ("vin", models.CharField(blank=True, default="", help_text="VIN / číslo karoserie.", max_length=50)),
                ("year", models.PositiveIntegerField()),
                ("last_service_date", models.DateField(blank=True, null=True)),
                (
                    "last_service_cost",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=10,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "stk_date",
                    models.DateField(blank=True, help_text="Next technical inspection (STK) due.", null=True),
                ),
                ("insurance_info", models.TextField(blank=True, null=True)),
                (
                    "vignette_until",
                    models.DateField(blank=True, help_text="Road-toll sticker valid until.", null=True),
                ),
                (
                    "rate_4h",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Flat price for rentals up to 4 hours.",
                        max_digits=9,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "rate_6h",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Flat price for rentals up to 6 hours.",
                        max_digits=9,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "rate_12h",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Flat price for rentals up to 12 hours.",
                        max_digits=9,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "rate_24h",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Flat price for rentals up to 24 hours.",
                        max_digits=9,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "daily_rate",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Per-day price for rentals longer than 24 hours (days rounded up).",
                        max_digits=9,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["brand", "license_plate"],
            },
        ),
        migrations.CreateModel(
            name="Rental",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("start", models.DateTimeField()),
                (
                    "end",
                    models.DateTimeField(help_text="Exclusive: the vehicle is free again from this instant."),
                ),
                (
                    "total_price",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("upcoming", "Upcoming"), ("active", "Active"), ("completed", "Completed")],
                        default="upcoming",
                        editable=False,
                        help_text="Cached from the clock on every save; use current_status for display.",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rentals",
                        to="bookings.customer",
                    ),
                ),
                (
                    "vehicle",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="rentals",
                        to="bookings.vehicle",
                    ),
                ),
            ],
            options={
                "ordering": ["-start"],
                "indexes": [models.Index(fields=["vehicle", "start", "end"], name="rental_vehicle_window_idx")],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("end__gt", models.F("start"))), name="rental_end_after_start")
                ],
            },
        ),
    ]
