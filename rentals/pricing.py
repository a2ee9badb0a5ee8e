from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError

CENT = Decimal("0.01")


def whole_days_between(start_date, end_date):
    return (end_date - start_date).days


def compute_total(daily_rate, start_date, end_date):
    """Total rental price: daily rate times whole days, no partial-day proration."""
    days = whole_days_between(start_date, end_date)
    if days < 1:
        raise ValidationError(
            {"end_date": "End date must be after start date."}
        )
    rate = Decimal(str(daily_rate))
    return (rate * days).quantize(CENT, rounding=ROUND_HALF_UP)
