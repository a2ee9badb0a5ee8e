import logging

from django.contrib import admin, messages
from django.core.exceptions import ValidationError

from .exceptions import ConflictError
from .forms import VehicleForm
from .models import Booking, Vehicle, VehicleImage
from .permissions import ROLE_ADMIN, role_for
from .services import set_vehicle_status, update_booking_status
from .signals import notify_vehicle_changed

logger = logging.getLogger(__name__)

admin.site.site_header = "VAN ELITE Admin"
admin.site.site_title = "VAN ELITE Admin"
admin.site.index_title = "Fleet & Bookings"


class UpcomingPickupFilter(admin.SimpleListFilter):
    title = "pickup"
    parameter_name = "pickup"

    def lookups(self, request, model_admin):
        return (
            ("open", "Awaiting pickup"),
            ("on_road", "On the road"),
            ("closed", "Closed"),
        )

    def queryset(self, request, queryset):
        value = self.value()
        if value == "open":
            return queryset.filter(status__in=(Booking.Status.PENDING, Booking.Status.CONFIRMED))
        if value == "on_road":
            return queryset.filter(status=Booking.Status.PROCEED)
        if value == "closed":
            return queryset.filter(status__in=(Booking.Status.COMPLETED, Booking.Status.CANCELLED))
        return queryset


class VehicleImageInline(admin.TabularInline):
    model = VehicleImage
    extra = 1
    fields = ("image_url", "sort_order")


class BookingInline(admin.TabularInline):
    model = Booking
    extra = 0
    fields = (
        "booking_code",
        "customer_name",
        "customer_phone",
        "start_date",
        "end_date",
        "total_price",
        "status",
    )
    readonly_fields = fields
    show_change_link = True
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    form = VehicleForm
    list_display = ("name", "model", "seats", "price_per_day", "co2_per_km", "status", "booking_count")
    list_filter = ("status", "seats")
    search_fields = ("name", "model")
    readonly_fields = ("created_at", "updated_at")
    inlines = (VehicleImageInline, BookingInline)
    actions = ("mark_available", "mark_maintenance", "mark_hidden")

    @admin.display(description="Bookings")
    def booking_count(self, obj):
        return obj.bookings.count()

    def has_delete_permission(self, request, obj=None):
        return role_for(request.user) == ROLE_ADMIN and super().has_delete_permission(request, obj)

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        vehicle = form.instance
        notify_vehicle_changed(vehicle, "updated" if change else "created")
        logger.info(
            "Vehicle %s %s in admin by %s",
            vehicle.pk,
            "updated" if change else "added",
            request.user.get_username(),
        )

    def delete_model(self, request, obj):
        vehicle_id = obj.pk
        super().delete_model(request, obj)
        obj.pk = vehicle_id
        notify_vehicle_changed(obj, "deleted")
        logger.info("Vehicle %s deleted in admin by %s", vehicle_id, request.user.get_username())

    def _set_status(self, request, queryset, status):
        for vehicle in queryset:
            set_vehicle_status(request.user, vehicle.pk, status)
        self.message_user(request, f"Marked {queryset.count()} vehicle(s) as {status}.")

    @admin.action(description="Mark selected vehicles as available")
    def mark_available(self, request, queryset):
        self._set_status(request, queryset, Vehicle.Status.AVAILABLE)

    @admin.action(description="Mark selected vehicles as in maintenance")
    def mark_maintenance(self, request, queryset):
        self._set_status(request, queryset, Vehicle.Status.MAINTENANCE)

    @admin.action(description="Hide selected vehicles from the storefront")
    def mark_hidden(self, request, queryset):
        self._set_status(request, queryset, Vehicle.Status.HIDDEN)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "vehicle",
        "customer_name",
        "customer_phone",
        "start_date",
        "end_date",
        "pickup_time",
        "total_price",
        "status",
        "created_at",
    )
    list_filter = ("status", UpcomingPickupFilter, "start_date", "created_at")
    search_fields = (
        "booking_code",
        "customer_name",
        "customer_phone",
        "pickup_location",
        "vehicle__name",
    )
    # Bookings are created once by customers; staff only annotate them. Status
    # moves through the actions below so the state machine applies.
    fields = (
        "booking_code",
        "vehicle",
        "customer_name",
        "customer_phone",
        "start_date",
        "end_date",
        "pickup_location",
        "pickup_time",
        "total_price",
        "status",
        "notes",
        "created_at",
        "updated_at",
    )
    readonly_fields = tuple(name for name in fields if name != "notes")
    date_hierarchy = "start_date"
    list_per_page = 25
    list_select_related = ("vehicle",)
    actions = ("mark_confirmed", "mark_proceed", "mark_completed", "mark_cancelled")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def _transition(self, request, queryset, status):
        updated = 0
        rejected = 0
        for booking in queryset:
            try:
                update_booking_status(booking.pk, status, request.user)
            except (ConflictError, ValidationError):
                rejected += 1
            else:
                updated += 1
        self.message_user(
            request,
            f"Status summary: updated={updated}, rejected={rejected}.",
            level=messages.WARNING if rejected else messages.SUCCESS,
        )

    @admin.action(description="Confirm selected bookings")
    def mark_confirmed(self, request, queryset):
        self._transition(request, queryset, Booking.Status.CONFIRMED)

    @admin.action(description="Mark selected bookings as in progress")
    def mark_proceed(self, request, queryset):
        self._transition(request, queryset, Booking.Status.PROCEED)

    @admin.action(description="Complete selected bookings")
    def mark_completed(self, request, queryset):
        self._transition(request, queryset, Booking.Status.COMPLETED)

    @admin.action(description="Cancel selected bookings")
    def mark_cancelled(self, request, queryset):
        self._transition(request, queryset, Booking.Status.CANCELLED)
