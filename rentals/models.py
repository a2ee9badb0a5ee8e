from dataclasses import asdict, dataclass, fields
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q

from .codes import CODE_LENGTH, unique_booking_code
from .validators import validate_phone


@dataclass(frozen=True)
class VehicleFeatures:
    wifi: bool = False
    ac: bool = True
    vip_seats: bool = False

    @classmethod
    def from_value(cls, value):
        if value in (None, ""):
            return cls()
        if isinstance(value, cls):
            return value
        if not isinstance(value, dict):
            raise ValidationError("Features must be an object.", code="invalid_features")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(value) - known)
        if unknown:
            raise ValidationError(
                "Unknown features: %(names)s.",
                code="invalid_features",
                params={"names": ", ".join(unknown)},
            )
        for name, flag in value.items():
            if not isinstance(flag, bool):
                raise ValidationError(
                    "Feature %(name)s must be true or false.",
                    code="invalid_features",
                    params={"name": name},
                )
        return cls(**value)

    def as_dict(self):
        return asdict(self)


def default_features():
    return VehicleFeatures().as_dict()


def validate_features(value):
    VehicleFeatures.from_value(value)


class Vehicle(models.Model):
    class Status(models.TextChoices):
        AVAILABLE = "available", "Available"
        MAINTENANCE = "maintenance", "Maintenance"
        HIDDEN = "hidden", "Hidden"

    name = models.CharField(max_length=120)
    # Example: Toyota Alphard Executive Lounge 2024
    model = models.CharField(max_length=120)
    seats = models.PositiveSmallIntegerField(default=8, validators=[MinValueValidator(1)])
    price_per_day = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    image_url = models.URLField(max_length=500, blank=True)
    description = models.TextField(blank=True)
    features = models.JSONField(default=default_features, validators=[validate_features])
    co2_per_km = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Grams of CO2 per km",
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.AVAILABLE,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)

    def __str__(self):
        return f"{self.name} ({self.model})"

    def clean(self):
        self.features = VehicleFeatures.from_value(self.features).as_dict()

    @property
    def feature_set(self):
        return VehicleFeatures.from_value(self.features)

    @property
    def primary_image_url(self):
        if self.image_url:
            return self.image_url
        first = next(iter(self.images.all()), None)
        return first.image_url if first else ""


class VehicleImage(models.Model):
    vehicle = models.ForeignKey(Vehicle, on_delete=models.CASCADE, related_name="images")
    image_url = models.URLField(max_length=500)
    sort_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("sort_order", "id")

    def __str__(self):
        return f"{self.vehicle.name} #{self.sort_order}"


class Booking(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        PROCEED = "proceed", "In Progress"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    # Allowed next states; completed and cancelled are terminal.
    TRANSITIONS = {
        Status.PENDING: (Status.CONFIRMED, Status.CANCELLED),
        Status.CONFIRMED: (Status.PROCEED, Status.COMPLETED, Status.CANCELLED),
        Status.PROCEED: (Status.COMPLETED, Status.CANCELLED),
        Status.COMPLETED: (),
        Status.CANCELLED: (),
    }

    booking_code = models.CharField(
        max_length=CODE_LENGTH, unique=True, db_index=True, editable=False
    )
    vehicle = models.ForeignKey(Vehicle, on_delete=models.PROTECT, related_name="bookings")
    customer_name = models.CharField(max_length=120)
    customer_phone = models.CharField(max_length=16, validators=[validate_phone])
    start_date = models.DateField()
    end_date = models.DateField()
    pickup_location = models.CharField(max_length=255)
    pickup_time = models.TimeField(null=True, blank=True)
    total_price = models.DecimalField(max_digits=10, decimal_places=2, editable=False)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__gt=F("start_date")),
                name="booking_end_after_start",
            ),
        ]

    def __str__(self):
        return f"{self.booking_code} - {self.vehicle.name}"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_code = instance.__dict__.get("booking_code")
        return instance

    @property
    def duration_days(self):
        return (self.end_date - self.start_date).days

    @property
    def is_terminal(self):
        return not self.TRANSITIONS[self.Status(self.status)]

    def can_transition_to(self, new_status):
        return new_status in self.TRANSITIONS[self.Status(self.status)]

    def clean(self):
        # If one of the dates is missing, don't compare yet
        if not self.start_date or not self.end_date:
            return

        if self.end_date <= self.start_date:
            raise ValidationError(
                {"end_date": "End date must be after start date."}
            )

    def save(self, *args, **kwargs):
        loaded_code = getattr(self, "_loaded_code", None)
        if loaded_code and self.booking_code != loaded_code:
            raise ValidationError("Booking code cannot be changed once assigned.")
        if not self.booking_code:
            self.booking_code = unique_booking_code(
                lambda candidate: Booking.objects.filter(booking_code=candidate).exists()
            )
        super().save(*args, **kwargs)
        self._loaded_code = self.booking_code
