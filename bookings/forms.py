from django import forms

from .models import Customer, Rental, Vehicle
from .services.availability import conflicting_bookings
from .services.booking import vehicle_bookings
from .services.pricing import quote_rental


class VehicleForm(forms.ModelForm):
    class Meta:
        model = Vehicle
        fields = [
            "brand",
            "license_plate",
            "vin",
            "year",
            "last_service_date",
            "last_service_cost",
            "stk_date",
            "insurance_info",
            "vignette_until",
            "rate_4h",
            "rate_6h",
            "rate_12h",
            "rate_24h",
            "daily_rate",
        ]
        labels = {
            "vin": "VIN",
            "stk_date": "STK due",
            "vignette_until": "Vignette until",
            "rate_4h": "4 hours",
            "rate_6h": "6 hours",
            "rate_12h": "12 hours",
            "rate_24h": "24 hours",
            "daily_rate": "Per day (over 24 hours)",
        }

    def clean_license_plate(self):
        return (self.cleaned_data.get("license_plate") or "").strip().upper()


class CustomerForm(forms.ModelForm):
    class Meta:
        model = Customer
        fields = [
            "first_name",
            "last_name",
            "email",
            "phone",
            "id_card_number",
            "drivers_license_number",
        ]

    def clean(self):
        cleaned_data = super().clean()
        for name in ("phone", "id_card_number", "drivers_license_number"):
            value = cleaned_data.get(name)
            if isinstance(value, str):
                cleaned_data[name] = value.strip() or None
        return cleaned_data


class RentalForm(forms.ModelForm):
    """
    Draft a rental: validates the window, blocks vehicles that are already
    booked, and proposes the rate-card price unless the operator typed one.

    Saved rentals keep their window and price; only vehicle/customer
    corrections are allowed afterwards.
    """

    FROZEN_FIELDS = ("start", "end", "total_price")

    class Meta:
        model = Rental
        fields = ["vehicle", "customer", "start", "end", "total_price"]
        labels = {
            "total_price": "Total price",
        }
        help_texts = {
            "total_price": "Leave empty to use the vehicle's rate card.",
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["total_price"].required = False
        self.quote = None
        if self.is_saved_rental:
            for name in self.FROZEN_FIELDS:
                self.fields[name].disabled = True

    @property
    def is_saved_rental(self) -> bool:
        # The UUID pk is assigned on instantiation, so pk alone says nothing.
        return not self.instance._state.adding

    def clean(self):
        cleaned_data = super().clean()

        start = cleaned_data.get("start")
        end = cleaned_data.get("end")
        vehicle = cleaned_data.get("vehicle")

        if start and end and end <= start:
            self.add_error("end", "Rental end must be after its start.")
            return cleaned_data

        if not (vehicle and start and end):
            return cleaned_data

        ignore_id = self.instance.pk if self.is_saved_rental else None
        conflicts = conflicting_bookings(
            vehicle.id, start, end, vehicle_bookings(vehicle.id, start, end), ignore_booking_id=ignore_id
        )
        if conflicts:
            self.add_error("vehicle", f"{vehicle} is already booked for the requested time.")
            return cleaned_data

        if self.is_saved_rental:
            cleaned_data["total_price"] = self.instance.total_price
        else:
            self.quote = quote_rental(vehicle, start, end)
            if cleaned_data.get("total_price") is None:
                cleaned_data["total_price"] = self.quote.total
        return cleaned_data
