from django.core.exceptions import PermissionDenied


class RentalError(Exception):
    code = "error"
    default_message = "Something went wrong."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(RentalError):
    code = "not_found"
    default_message = "Not found."


class ConflictError(RentalError):
    code = "conflict"
    default_message = "This change conflicts with the current state. Please try again later."


class AuthorizationError(PermissionDenied):
    """Raised for anonymous and non-staff callers alike."""

    code = "forbidden"

    def __init__(self):
        self.message = "Access denied."
        super().__init__(self.message)
