from functools import wraps
import json

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.csrf import csrf_failure as default_csrf_failure
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import services
from .exceptions import AuthorizationError, RentalError
from .forms import BookingRequestForm, BookingStatusForm, VehicleImageForm
from .permissions import require_staff


def _error_response(message, code, status, fields=None):
    payload = {"error": message, "code": code}
    if fields:
        payload["fields"] = fields
    return JsonResponse(payload, status=status)


def _validation_payload(exc):
    if hasattr(exc, "error_dict"):
        return {field: messages for field, messages in exc.message_dict.items()}
    return {"__all__": exc.messages}


def json_api(view):
    """Translate service exceptions into the API's JSON error shape."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ValidationError as exc:
            return _error_response(
                "Please correct the highlighted fields.",
                "invalid",
                400,
                fields=_validation_payload(exc),
            )
        except AuthorizationError as exc:
            return _error_response(exc.message, exc.code, 403)
        except RentalError as exc:
            status = 404 if exc.code == "not_found" else 409
            return _error_response(exc.message, exc.code, status)

    return wrapper


def _json_body(request):
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid payload.") from None
    if not isinstance(payload, dict):
        raise ValidationError("Invalid payload.")
    return payload


def _vehicle_payload(vehicle, include_status=False):
    payload = {
        "id": vehicle.id,
        "name": vehicle.name,
        "model": vehicle.model,
        "seats": vehicle.seats,
        "price_per_day": str(vehicle.price_per_day),
        "image_url": vehicle.primary_image_url,
        "description": vehicle.description,
        "features": vehicle.feature_set.as_dict(),
        "co2_per_km": None if vehicle.co2_per_km is None else str(vehicle.co2_per_km),
        "images": [
            {"id": image.id, "image_url": image.image_url, "sort_order": image.sort_order}
            for image in vehicle.images.all()
        ],
    }
    if include_status:
        payload["status"] = vehicle.status
    return payload


def _booking_payload(booking):
    return {
        "id": booking.id,
        "booking_code": booking.booking_code,
        "vehicle_id": booking.vehicle_id,
        "vehicle_name": booking.vehicle.name,
        "vehicle_model": booking.vehicle.model,
        "customer_name": booking.customer_name,
        "customer_phone": booking.customer_phone,
        "start_date": booking.start_date.isoformat(),
        "end_date": booking.end_date.isoformat(),
        "pickup_location": booking.pickup_location,
        "pickup_time": booking.pickup_time.isoformat() if booking.pickup_time else None,
        "total_price": str(booking.total_price),
        "status": booking.status,
        "notes": booking.notes,
        "created_at": booking.created_at.isoformat(),
        "updated_at": booking.updated_at.isoformat(),
    }


def _summary_payload(summary):
    payload = summary.as_dict()
    payload["start_date"] = summary.start_date.isoformat()
    payload["end_date"] = summary.end_date.isoformat()
    payload["pickup_time"] = summary.pickup_time.isoformat() if summary.pickup_time else None
    payload["total_price"] = str(summary.total_price)
    payload["created_at"] = summary.created_at.isoformat()
    return payload


# Storefront clients read the csrftoken cookie here and echo it in X-CSRFToken.
@require_GET
@ensure_csrf_cookie
@json_api
def fleet_api(request):
    vehicles = services.list_fleet(request.user)
    return JsonResponse({"vehicles": [_vehicle_payload(vehicle) for vehicle in vehicles]})


@require_POST
@json_api
def create_booking_api(request):
    form = BookingRequestForm(_json_body(request))
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())

    booking = services.create_booking(**form.cleaned_data)
    return JsonResponse({"booking": _booking_payload(booking)}, status=201)


@require_GET
@json_api
def lookup_booking_api(request):
    summary = services.find_booking_by_code(request.GET.get("code"))
    return JsonResponse({"booking": _summary_payload(summary)})


@require_GET
@json_api
def staff_bookings_api(request):
    bookings = services.list_bookings(request.user, request.GET.get("status"))
    return JsonResponse({"bookings": [_booking_payload(booking) for booking in bookings]})


@require_POST
@json_api
def staff_booking_status_api(request, booking_id):
    form = BookingStatusForm(_json_body(request))
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())

    booking = services.update_booking_status(booking_id, form.cleaned_data["status"], request.user)
    return JsonResponse({"booking": _booking_payload(booking)})


@require_GET
@json_api
def staff_dashboard_api(request):
    metrics = services.dashboard_metrics(request.user)
    return JsonResponse(
        {
            "bookings_today": metrics["bookings_today"],
            "pending": metrics["pending"],
            "confirmed": metrics["confirmed"],
            "revenue": str(metrics["revenue"]),
            "recent_bookings": [_booking_payload(booking) for booking in metrics["recent_bookings"]],
        }
    )


@require_http_methods(["GET", "POST"])
@json_api
def staff_vehicles_api(request):
    if request.method == "POST":
        vehicle = services.create_vehicle(request.user, _json_body(request))
        return JsonResponse({"vehicle": _vehicle_payload(vehicle, include_status=True)}, status=201)

    require_staff(request.user)
    vehicles = services.list_fleet(request.user, request.GET.get("status"))
    return JsonResponse(
        {"vehicles": [_vehicle_payload(vehicle, include_status=True) for vehicle in vehicles]}
    )


@require_POST
@json_api
def staff_vehicle_update_api(request, vehicle_id):
    vehicle = services.update_vehicle(request.user, vehicle_id, _json_body(request))
    return JsonResponse({"vehicle": _vehicle_payload(vehicle, include_status=True)})


@require_POST
@json_api
def staff_vehicle_status_api(request, vehicle_id):
    payload = _json_body(request)
    vehicle = services.set_vehicle_status(request.user, vehicle_id, payload.get("status"))
    return JsonResponse({"vehicle": _vehicle_payload(vehicle, include_status=True)})


@require_POST
@json_api
def staff_vehicle_delete_api(request, vehicle_id):
    services.delete_vehicle(request.user, vehicle_id)
    return JsonResponse({"ok": True})


@require_POST
@json_api
def staff_vehicle_images_api(request, vehicle_id):
    form = VehicleImageForm(_json_body(request))
    if not form.is_valid():
        raise ValidationError(form.errors.as_data())

    image = services.add_vehicle_image(
        request.user,
        vehicle_id,
        form.cleaned_data["image_url"],
        form.cleaned_data["sort_order"],
    )
    return JsonResponse(
        {"image": {"id": image.id, "image_url": image.image_url, "sort_order": image.sort_order}},
        status=201,
    )


@require_POST
@json_api
def staff_vehicle_images_reorder_api(request, vehicle_id):
    image_ids = _json_body(request).get("image_ids")
    if not isinstance(image_ids, list) or not all(
        isinstance(i, int) and not isinstance(i, bool) for i in image_ids
    ):
        raise ValidationError({"image_ids": "Provide a list of image ids."})

    images = services.reorder_vehicle_images(request.user, vehicle_id, image_ids)
    return JsonResponse(
        {"images": [{"id": image.id, "sort_order": image.sort_order} for image in images]}
    )


@require_POST
@json_api
def staff_image_delete_api(request, image_id):
    services.remove_vehicle_image(request.user, image_id)
    return JsonResponse({"ok": True})


def csrf_failure(request, reason=""):
    if not request.path.startswith("/api/"):
        return default_csrf_failure(request, reason=reason)
    return _error_response(
        "Missing or invalid CSRF token. Fetch /api/fleet/ and send the csrftoken cookie as X-CSRFToken.",
        "csrf",
        403,
    )
