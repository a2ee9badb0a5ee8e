from .exceptions import AuthorizationError

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
STAFF_ROLES = (ROLE_ADMIN, ROLE_STAFF)


def role_for(user):
    if user is None or not user.is_authenticated or not user.is_active:
        return None
    if user.is_superuser:
        return ROLE_ADMIN
    if user.is_staff:
        return ROLE_STAFF
    return None


def is_staff_user(user):
    return role_for(user) in STAFF_ROLES


def require_staff(user):
    if not is_staff_user(user):
        raise AuthorizationError()


def require_admin(user):
    if role_for(user) != ROLE_ADMIN:
        raise AuthorizationError()
