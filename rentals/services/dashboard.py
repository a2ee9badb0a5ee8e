from datetime import datetime, time
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from ..models import Booking
from ..permissions import require_staff

RECENT_BOOKINGS_LIMIT = 8


def _start_of_today(now):
    today = timezone.localdate(now)
    return timezone.make_aware(datetime.combine(today, time.min))


def dashboard_metrics(user, now=None):
    """Headline numbers for the staff dashboard."""
    require_staff(user)
    if now is None:
        now = timezone.now()

    revenue = (
        Booking.objects.filter(status=Booking.Status.COMPLETED)
        .aggregate(total=Sum("total_price"))["total"]
    )
    recent = Booking.objects.select_related("vehicle")[:RECENT_BOOKINGS_LIMIT]
    return {
        "bookings_today": Booking.objects.filter(created_at__gte=_start_of_today(now)).count(),
        "pending": Booking.objects.filter(status=Booking.Status.PENDING).count(),
        "confirmed": Booking.objects.filter(status=Booking.Status.CONFIRMED).count(),
        "revenue": revenue if revenue is not None else Decimal("0.00"),
        "recent_bookings": list(recent),
    }
