import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from ..codes import normalize_code
from ..exceptions import ConflictError, NotFoundError
from ..models import Booking, Vehicle
from ..permissions import require_staff
from ..pricing import compute_total
from ..signals import notify_booking_changed
from ..validators import normalize_phone, validate_phone

logger = logging.getLogger(__name__)

STATUS_FILTER_ALL = "all"


@dataclass(frozen=True)
class BookingSummary:
    """What a customer holding the booking code is allowed to see."""

    booking_code: str
    status: str
    customer_name: str
    start_date: date
    end_date: date
    pickup_location: str
    pickup_time: Optional[time]
    total_price: Decimal
    notes: str
    created_at: datetime
    vehicle_name: str
    vehicle_model: str
    vehicle_image_url: str

    @classmethod
    def from_booking(cls, booking):
        vehicle = booking.vehicle
        return cls(
            booking_code=booking.booking_code,
            status=booking.status,
            customer_name=booking.customer_name,
            start_date=booking.start_date,
            end_date=booking.end_date,
            pickup_location=booking.pickup_location,
            pickup_time=booking.pickup_time,
            total_price=booking.total_price,
            notes=booking.notes,
            created_at=booking.created_at,
            vehicle_name=vehicle.name,
            vehicle_model=vehicle.model,
            vehicle_image_url=vehicle.primary_image_url,
        )

    def as_dict(self):
        return asdict(self)


def _validate_request(customer_phone, start_date, end_date):
    errors = {}
    try:
        validate_phone(customer_phone)
    except ValidationError as exc:
        errors["customer_phone"] = exc.messages
    if not start_date:
        errors["start_date"] = ["This field is required."]
    if not end_date:
        errors["end_date"] = ["This field is required."]
    if start_date and end_date and end_date <= start_date:
        errors["end_date"] = ["End date must be after start date."]
    if errors:
        raise ValidationError(errors)


def _save_with_fresh_code(booking):
    """Insert ``booking``, drawing a new code whenever the unique index rejects it."""
    retries = settings.BOOKING_CODE_COLLISION_RETRIES
    for _attempt in range(retries + 1):
        try:
            with transaction.atomic():
                booking.save()
            return booking
        except IntegrityError:
            if not Booking.objects.filter(booking_code=booking.booking_code).exists():
                raise
            logger.warning(
                "Booking code %s collided on insert, retrying", booking.booking_code
            )
            booking.booking_code = ""

    logger.error("Gave up allocating a booking code after %s collisions", retries + 1)
    raise ConflictError("Could not allocate a booking code. Please try again later.")


def create_booking(
    vehicle_id,
    customer_name,
    customer_phone,
    start_date,
    end_date,
    pickup_location,
    pickup_time=None,
    notes=None,
):
    """Record a customer's reservation request as a ``pending`` booking.

    The total is a snapshot of the vehicle's current daily rate; later rate
    changes never touch existing bookings.
    """
    phone = normalize_phone(customer_phone)
    _validate_request(phone, start_date, end_date)

    vehicle = Vehicle.objects.filter(pk=vehicle_id).first()
    if vehicle is None:
        raise NotFoundError("Vehicle not found.")
    if vehicle.status != Vehicle.Status.AVAILABLE:
        raise ValidationError(
            {"vehicle_id": "This vehicle is not available for booking right now."}
        )

    booking = Booking(
        vehicle=vehicle,
        customer_name=(customer_name or "").strip(),
        customer_phone=phone,
        start_date=start_date,
        end_date=end_date,
        pickup_location=(pickup_location or "").strip(),
        pickup_time=pickup_time,
        notes=(notes or "").strip(),
        total_price=compute_total(vehicle.price_per_day, start_date, end_date),
        status=Booking.Status.PENDING,
    )
    booking.full_clean(exclude=["booking_code"])

    with transaction.atomic():
        _save_with_fresh_code(booking)
        notify_booking_changed(booking, "created")

    logger.info(
        "Created booking %s for vehicle %s (%s days)",
        booking.booking_code,
        vehicle.pk,
        booking.duration_days,
    )
    return booking


def find_booking_by_code(code):
    """Resolve a customer-supplied code. Holding the code is the only credential."""
    normalized = normalize_code(code)
    if not normalized:
        raise NotFoundError("Booking not found.")

    booking = (
        Booking.objects.select_related("vehicle")
        .prefetch_related("vehicle__images")
        .filter(booking_code=normalized)
        .first()
    )
    if booking is None:
        raise NotFoundError("Booking not found.")
    return BookingSummary.from_booking(booking)


def list_bookings(user, status=None):
    require_staff(user)

    bookings = Booking.objects.select_related("vehicle")
    if status in (None, "", STATUS_FILTER_ALL):
        return bookings
    if status not in Booking.Status.values:
        raise ValidationError({"status": f"Unknown booking status: {status}."})
    return bookings.filter(status=status)


def update_booking_status(booking_id, new_status, user):
    require_staff(user)
    if new_status not in Booking.Status.values:
        raise ValidationError({"status": f"Unknown booking status: {new_status}."})

    with transaction.atomic():
        booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
        if booking is None:
            raise NotFoundError("Booking not found.")

        previous_status = booking.status
        if previous_status == new_status:
            return booking
        if not booking.can_transition_to(new_status):
            raise ConflictError(
                f"A {booking.get_status_display().lower()} booking cannot be moved to "
                f"{Booking.Status(new_status).label.lower()}."
            )

        booking.status = new_status
        booking.save(update_fields=["status", "updated_at"])
        notify_booking_changed(booking, "status_changed", previous_status=previous_status)

    logger.info(
        "Booking %s moved %s -> %s by %s",
        booking.booking_code,
        previous_status,
        new_status,
        user.get_username(),
    )
    return booking
