import re

from django.core.exceptions import ValidationError

# Thai mobile (06/08/09 + 8 digits) or landline (02-09 + 7-8 digits).
PHONE_PATTERN = re.compile(r"^(0[689]\d{8}|0[2-9]\d{7,8})$")


def normalize_phone(value):
    """Strip the spaces and dashes customers tend to type."""
    return re.sub(r"[-\s]", "", value or "")


def validate_phone(value):
    if not PHONE_PATTERN.match(normalize_phone(value)):
        raise ValidationError(
            "Please enter a valid Thai phone number.",
            code="invalid_phone",
        )
