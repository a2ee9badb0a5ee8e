import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Max, ProtectedError
from django.forms.models import model_to_dict

from ..exceptions import ConflictError, NotFoundError
from ..forms import VehicleForm
from ..models import Vehicle, VehicleImage
from ..permissions import is_staff_user, require_admin, require_staff
from ..signals import notify_vehicle_changed

logger = logging.getLogger(__name__)


def _get_vehicle(vehicle_id, for_update=False):
    vehicles = Vehicle.objects.select_for_update() if for_update else Vehicle.objects
    vehicle = vehicles.filter(pk=vehicle_id).first()
    if vehicle is None:
        raise NotFoundError("Vehicle not found.")
    return vehicle


def _save_vehicle_form(form, action):
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())
    with transaction.atomic():
        vehicle = form.save()
        notify_vehicle_changed(vehicle, action)
    return vehicle


def list_fleet(user=None, status=None):
    """Public callers see available vans only; staff may see and filter everything."""
    vehicles = Vehicle.objects.prefetch_related("images")
    if not is_staff_user(user):
        return vehicles.filter(status=Vehicle.Status.AVAILABLE)
    if status in (None, "", "all"):
        return vehicles
    if status not in Vehicle.Status.values:
        raise ValidationError({"status": f"Unknown vehicle status: {status}."})
    return vehicles.filter(status=status)


def create_vehicle(user, data):
    require_staff(user)
    vehicle = _save_vehicle_form(VehicleForm(data), "created")
    logger.info("Vehicle %s (%s) added by %s", vehicle.pk, vehicle.name, user.get_username())
    return vehicle


def update_vehicle(user, vehicle_id, changes):
    """Apply a partial update; fields missing from ``changes`` keep their value."""
    require_staff(user)
    vehicle = _get_vehicle(vehicle_id)
    data = {**model_to_dict(vehicle, fields=VehicleForm.Meta.fields), **changes}
    data = {key: ("" if value is None else value) for key, value in data.items()}
    vehicle = _save_vehicle_form(VehicleForm(data, instance=vehicle), "updated")
    logger.info("Vehicle %s updated by %s", vehicle.pk, user.get_username())
    return vehicle


def set_vehicle_status(user, vehicle_id, status):
    require_staff(user)
    if status not in Vehicle.Status.values:
        raise ValidationError({"status": f"Unknown vehicle status: {status}."})

    with transaction.atomic():
        vehicle = _get_vehicle(vehicle_id, for_update=True)
        if vehicle.status == status:
            return vehicle
        previous_status = vehicle.status
        vehicle.status = status
        vehicle.save(update_fields=["status", "updated_at"])
        notify_vehicle_changed(vehicle, "status_changed")

    logger.info("Vehicle %s moved %s -> %s", vehicle.pk, previous_status, status)
    return vehicle


def delete_vehicle(user, vehicle_id):
    require_admin(user)
    vehicle = _get_vehicle(vehicle_id)
    try:
        with transaction.atomic():
            vehicle.delete()
    except ProtectedError as exc:
        raise ConflictError("This vehicle has bookings and cannot be deleted.") from exc
    vehicle.pk = vehicle_id
    notify_vehicle_changed(vehicle, "deleted")
    logger.info("Vehicle %s deleted by %s", vehicle_id, user.get_username())


def add_vehicle_image(user, vehicle_id, image_url, sort_order=None):
    require_staff(user)
    with transaction.atomic():
        vehicle = _get_vehicle(vehicle_id, for_update=True)
        if sort_order is None:
            current_max = vehicle.images.aggregate(top=Max("sort_order"))["top"]
            sort_order = 0 if current_max is None else current_max + 1
        image = VehicleImage(vehicle=vehicle, image_url=image_url, sort_order=sort_order)
        image.full_clean()
        image.save()
        notify_vehicle_changed(vehicle, "images_changed")
    return image


def remove_vehicle_image(user, image_id):
    require_staff(user)
    image = VehicleImage.objects.select_related("vehicle").filter(pk=image_id).first()
    if image is None:
        raise NotFoundError("Image not found.")
    with transaction.atomic():
        image.delete()
        notify_vehicle_changed(image.vehicle, "images_changed")


def reorder_vehicle_images(user, vehicle_id, image_ids):
    """Rewrite sort orders so the gallery follows ``image_ids`` exactly."""
    require_staff(user)
    with transaction.atomic():
        vehicle = _get_vehicle(vehicle_id, for_update=True)
        images = {image.pk: image for image in vehicle.images.all()}
        if len(image_ids) != len(set(image_ids)) or set(image_ids) != set(images):
            raise ValidationError(
                {"image_ids": "List every image of this vehicle exactly once."}
            )
        for position, image_id in enumerate(image_ids):
            image = images[image_id]
            image.sort_order = position
        VehicleImage.objects.bulk_update(images.values(), ["sort_order"])
        notify_vehicle_changed(vehicle, "images_changed")
    return list(vehicle.images.all())
