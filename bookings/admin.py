from django.contrib import admin
from django.utils import timezone

from .forms import CustomerForm, RentalForm, VehicleForm
from .models import Customer, Rental, Vehicle
from .services.booking import save_booking
from .services.status import vehicle_is_rented


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    form = VehicleForm
    list_display = (
        "license_plate",
        "brand",
        "year",
        "stk_date",
        "vignette_until",
        "rate_4h",
        "rate_24h",
        "daily_rate",
        "is_rented",
    )
    list_filter = ("brand",)
    search_fields = ("license_plate", "vin", "brand")

    @admin.display(description="Rented now", boolean=True)
    def is_rented(self, obj):
        now = timezone.now()
        return vehicle_is_rented(obj.id, obj.rentals.filter(start__lte=now, end__gt=now), now)


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    form = CustomerForm
    list_display = ("last_name", "first_name", "email", "phone", "drivers_license_number")
    search_fields = ("first_name", "last_name", "email", "phone", "drivers_license_number", "id_card_number")


@admin.register(Rental)
class RentalAdmin(admin.ModelAdmin):
    form = RentalForm
    list_display = ("deal_name", "vehicle", "customer", "start", "end", "total_price", "current_status")
    list_filter = ("start", "end", "vehicle")
    search_fields = ("vehicle__license_plate", "customer__first_name", "customer__last_name", "customer__email")
    readonly_fields = ("status", "created_by", "created_at")

    @admin.display(description="Status")
    def current_status(self, obj):
        return obj.current_status

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        save_booking(obj)
