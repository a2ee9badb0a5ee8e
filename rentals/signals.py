from django.db import transaction
from django.dispatch import Signal

# Sent once the write is committed, so receivers can safely re-query.
# Kwargs: booking, action ("created" or "status_changed"), previous_status.
booking_changed = Signal()

# Kwargs: vehicle, action ("created", "updated", "status_changed",
# "images_changed" or "deleted").
vehicle_changed = Signal()


def notify_booking_changed(booking, action, previous_status=None):
    transaction.on_commit(
        lambda: booking_changed.send(
            sender=type(booking),
            booking=booking,
            action=action,
            previous_status=previous_status,
        )
    )


def notify_vehicle_changed(vehicle, action):
    transaction.on_commit(
        lambda: vehicle_changed.send(
            sender=type(vehicle),
            vehicle=vehicle,
            action=action,
        )
    )
