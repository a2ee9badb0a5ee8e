from .bookings import (
    BookingSummary,
    create_booking,
    find_booking_by_code,
    list_bookings,
    update_booking_status,
)
from .dashboard import dashboard_metrics
from .fleet import (
    add_vehicle_image,
    create_vehicle,
    delete_vehicle,
    list_fleet,
    remove_vehicle_image,
    reorder_vehicle_images,
    set_vehicle_status,
    update_vehicle,
)

__all__ = [
    "BookingSummary",
    "add_vehicle_image",
    "create_booking",
    "create_vehicle",
    "dashboard_metrics",
    "delete_vehicle",
    "find_booking_by_code",
    "list_bookings",
    "list_fleet",
    "remove_vehicle_image",
    "reorder_vehicle_images",
    "set_vehicle_status",
    "update_booking_status",
    "update_vehicle",
]
