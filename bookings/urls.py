from django.urls import path

from . import views

app_name = "bookings"

urlpatterns = [
    path("", views.dashboard, name="dashboard"),
    path("vehicles/availability/", views.vehicle_availability, name="vehicle_availability"),
    path("vehicles/import/", views.import_vehicles, name="import_vehicles"),
    path("vehicles/<int:pk>/rentals/", views.vehicle_rentals, name="vehicle_rentals"),
    path("quote/", views.price_quote, name="price_quote"),
    path("calendar/", views.calendar_month, name="calendar_month"),
    path("customers/search/", views.customer_search, name="customer_search"),
    path("rentals/new/", views.rental_create, name="rental_create"),
    path("rentals/export/", views.export_rentals_csv, name="export_rentals_csv"),
    path("rentals/<uuid:pk>/payment/", views.rental_payment, name="rental_payment"),
]
