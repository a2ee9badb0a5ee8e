import logging

from django.db import DatabaseError

from .permissions import is_staff_user

logger = logging.getLogger(__name__)


def admin_insights(request):
    """Small metrics block for admin dashboard templates."""
    if not request.path.startswith("/admin") or not is_staff_user(request.user):
        return {}

    from .services import dashboard_metrics

    try:
        return {"admin_metrics": dashboard_metrics(request.user)}
    except DatabaseError:
        logger.exception("Could not load dashboard metrics")
        return {}
