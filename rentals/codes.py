import logging
import secrets
import string

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6


def generate_booking_code():
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def unique_booking_code(is_taken, generate=None):
    """Draw codes until ``is_taken`` reports a free one.

    The loop has no upper bound: with 36**6 candidates an exhausted code
    space is not a condition we plan for. Callers still have to rely on the
    unique constraint at insert time, this check alone is racy.
    """
    generate = generate or generate_booking_code
    while True:
        candidate = generate()
        if not is_taken(candidate):
            return candidate
        logger.warning("Booking code %s already taken, drawing another", candidate)


def normalize_code(raw):
    return (raw or "").strip().upper()
