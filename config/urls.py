from django.contrib import admin
from django.urls import path
from rentals.views import (
    create_booking_api,
    fleet_api,
    lookup_booking_api,
    staff_booking_status_api,
    staff_bookings_api,
    staff_dashboard_api,
    staff_image_delete_api,
    staff_vehicle_delete_api,
    staff_vehicle_images_api,
    staff_vehicle_images_reorder_api,
    staff_vehicle_status_api,
    staff_vehicle_update_api,
    staff_vehicles_api,
)

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/fleet/", fleet_api),
    path("api/bookings/", create_booking_api),
    path("api/bookings/lookup/", lookup_booking_api),
    path("api/staff/bookings/", staff_bookings_api),
    path("api/staff/bookings/<int:booking_id>/status/", staff_booking_status_api),
    path("api/staff/dashboard/", staff_dashboard_api),
    path("api/staff/vehicles/", staff_vehicles_api),
    path("api/staff/vehicles/<int:vehicle_id>/", staff_vehicle_update_api),
    path("api/staff/vehicles/<int:vehicle_id>/status/", staff_vehicle_status_api),
    path("api/staff/vehicles/<int:vehicle_id>/delete/", staff_vehicle_delete_api),
    path("api/staff/vehicles/<int:vehicle_id>/images/", staff_vehicle_images_api),
    path("api/staff/vehicles/<int:vehicle_id>/images/reorder/", staff_vehicle_images_reorder_api),
    path("api/staff/images/<int:image_id>/delete/", staff_image_delete_api),
]
