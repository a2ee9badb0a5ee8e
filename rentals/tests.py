from datetime import date, time
from decimal import Decimal
import json
from unittest.mock import patch

from django.contrib.auth.models import AnonymousUser, User
from django.core.exceptions import ValidationError
from django.test import Client, SimpleTestCase, TestCase, override_settings

from .codes import CODE_ALPHABET, generate_booking_code, normalize_code
from .exceptions import AuthorizationError, ConflictError, NotFoundError
from .models import Booking, Vehicle, VehicleImage
from .pricing import compute_total, whole_days_between
from .services import (
    add_vehicle_image,
    create_booking,
    create_vehicle,
    dashboard_metrics,
    delete_vehicle,
    find_booking_by_code,
    list_bookings,
    list_fleet,
    remove_vehicle_image,
    reorder_vehicle_images,
    set_vehicle_status,
    update_booking_status,
    update_vehicle,
)
from .signals import booking_changed, vehicle_changed
from .validators import validate_phone


class PricingTests(SimpleTestCase):
    def test_total_is_daily_rate_times_whole_days(self):
        total = compute_total(1800, date(2025, 6, 10), date(2025, 6, 13))
        self.assertEqual(total, Decimal("5400.00"))

    def test_single_day_rental(self):
        self.assertEqual(whole_days_between(date(2025, 6, 10), date(2025, 6, 11)), 1)
        self.assertEqual(compute_total(Decimal("3800.50"), date(2025, 6, 10), date(2025, 6, 11)), Decimal("3800.50"))

    def test_same_day_range_is_rejected(self):
        with self.assertRaises(ValidationError):
            compute_total(1800, date(2025, 6, 10), date(2025, 6, 10))

    def test_reversed_range_is_rejected(self):
        with self.assertRaises(ValidationError):
            compute_total(1800, date(2025, 6, 13), date(2025, 6, 10))


class PhoneValidationTests(SimpleTestCase):
    def test_accepts_mobile_and_landline_numbers(self):
        for phone in ("0891234567", "0612345678", "021234567", "089-123-4567", "089 123 4567"):
            validate_phone(phone)

    def test_rejects_short_and_foreign_numbers(self):
        for phone in ("12345", "+66891234567", "0191234567", ""):
            with self.assertRaises(ValidationError):
                validate_phone(phone)


class BookingCodeTests(SimpleTestCase):
    def test_generated_codes_are_six_uppercase_alphanumerics(self):
        for _ in range(200):
            code = generate_booking_code()
            self.assertEqual(len(code), 6)
            self.assertTrue(all(ch in CODE_ALPHABET for ch in code))

    def test_normalize_trims_and_uppercases(self):
        self.assertEqual(normalize_code("  ab12cd \n"), "AB12CD")
        self.assertEqual(normalize_code(None), "")


class RentalTestCase(TestCase):
    def setUp(self):
        self.vehicle = Vehicle.objects.create(
            name="Test Cruiser",
            model="Hyundai H-1 Premium 2023",
            seats=9,
            price_per_day=Decimal("1800.00"),
        )
        self.staff = User.objects.create_user(
            username="staff", email="staff@example.com", password="SafePass123!", is_staff=True
        )
        self.customer = User.objects.create_user(
            username="customer", email="customer@example.com", password="SafePass123!"
        )

    def _create_booking(self, **overrides):
        data = {
            "vehicle_id": self.vehicle.id,
            "customer_name": "Somchai Jaidee",
            "customer_phone": "0891234567",
            "start_date": date(2025, 6, 10),
            "end_date": date(2025, 6, 13),
            "pickup_location": "Suvarnabhumi Airport",
        }
        data.update(overrides)
        return create_booking(**data)


class BookingCreationTests(RentalTestCase):
    def test_creates_pending_booking_with_code_and_total(self):
        booking = self._create_booking(pickup_time=time(9, 30), notes="Child seat please")

        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(len(booking.booking_code), 6)
        self.assertEqual(booking.booking_code, booking.booking_code.upper())
        self.assertEqual(booking.total_price, Decimal("5400.00"))
        self.assertEqual(booking.pickup_time, time(9, 30))
        self.assertEqual(booking.notes, "Child seat please")

    def test_one_day_booking_succeeds(self):
        booking = self._create_booking(end_date=date(2025, 6, 11))
        self.assertEqual(booking.duration_days, 1)
        self.assertEqual(booking.total_price, Decimal("1800.00"))

    def test_same_day_booking_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self._create_booking(end_date=date(2025, 6, 10))
        self.assertIn("end_date", ctx.exception.message_dict)
        self.assertEqual(Booking.objects.count(), 0)

    def test_invalid_phone_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            self._create_booking(customer_phone="12345")
        self.assertIn("customer_phone", ctx.exception.message_dict)

    def test_phone_is_stored_without_separators(self):
        booking = self._create_booking(customer_phone="089-123 4567")
        self.assertEqual(booking.customer_phone, "0891234567")

    def test_unknown_vehicle_is_not_found(self):
        with self.assertRaises(NotFoundError):
            self._create_booking(vehicle_id=self.vehicle.id + 1000)

    def test_hidden_vehicle_cannot_be_booked(self):
        self.vehicle.status = Vehicle.Status.HIDDEN
        self.vehicle.save()
        with self.assertRaises(ValidationError) as ctx:
            self._create_booking()
        self.assertIn("vehicle_id", ctx.exception.message_dict)

    def test_total_is_a_snapshot_of_the_daily_rate(self):
        booking = self._create_booking()
        update_vehicle(self.staff, self.vehicle.id, {"price_per_day": "2500.00"})

        booking.refresh_from_db()
        self.assertEqual(booking.total_price, Decimal("5400.00"))

    def test_booking_code_cannot_be_changed(self):
        booking = Booking.objects.get(pk=self._create_booking().pk)
        booking.booking_code = "AAAAAA"
        with self.assertRaises(ValidationError):
            booking.save()

    def test_generator_draws_again_when_code_is_taken(self):
        existing = self._create_booking()
        with patch("rentals.codes.generate_booking_code", side_effect=[existing.booking_code, "NEW123"]):
            booking = self._create_booking()
        self.assertEqual(booking.booking_code, "NEW123")

    def test_insert_time_collision_is_retried(self):
        existing = self._create_booking()
        with patch(
            "rentals.models.unique_booking_code",
            side_effect=[existing.booking_code, "FRESH1"],
        ):
            booking = self._create_booking()

        self.assertEqual(booking.booking_code, "FRESH1")
        codes = list(Booking.objects.values_list("booking_code", flat=True))
        self.assertEqual(len(codes), len(set(codes)))

    @override_settings(BOOKING_CODE_COLLISION_RETRIES=2)
    def test_exhausted_collisions_raise_conflict(self):
        existing = self._create_booking()
        with patch("rentals.models.unique_booking_code", return_value=existing.booking_code):
            with self.assertRaises(ConflictError):
                self._create_booking()
        self.assertEqual(Booking.objects.count(), 1)

    def test_creation_emits_change_signal_after_commit(self):
        received = []

        def receiver(sender, booking, action, previous_status, **kwargs):
            received.append((booking.booking_code, action))

        booking_changed.connect(receiver)
        self.addCleanup(booking_changed.disconnect, receiver)

        with self.captureOnCommitCallbacks(execute=True):
            booking = self._create_booking()

        self.assertEqual(received, [(booking.booking_code, "created")])


class BookingLookupTests(RentalTestCase):
    def test_lookup_ignores_case_and_whitespace(self):
        booking = self._create_booking()
        summary = find_booking_by_code(f"  {booking.booking_code.lower()}  ")

        self.assertEqual(summary.booking_code, booking.booking_code)
        self.assertEqual(summary.status, Booking.Status.PENDING)
        self.assertEqual(summary.total_price, Decimal("5400.00"))
        self.assertEqual(summary.vehicle_name, "Test Cruiser")
        self.assertEqual(summary.vehicle_model, "Hyundai H-1 Premium 2023")

    def test_lookup_uses_first_gallery_image_without_primary(self):
        VehicleImage.objects.create(vehicle=self.vehicle, image_url="https://cdn.example.com/b.jpg", sort_order=2)
        VehicleImage.objects.create(vehicle=self.vehicle, image_url="https://cdn.example.com/a.jpg", sort_order=1)
        booking = self._create_booking()

        summary = find_booking_by_code(booking.booking_code)
        self.assertEqual(summary.vehicle_image_url, "https://cdn.example.com/a.jpg")

    def test_unknown_code_is_not_found(self):
        self._create_booking()
        with self.assertRaises(NotFoundError):
            find_booking_by_code("ZZZZZ")

    def test_blank_code_is_not_found(self):
        with self.assertRaises(NotFoundError):
            find_booking_by_code("   ")


class BookingStatusTests(RentalTestCase):
    def test_confirmed_booking_moves_between_filters(self):
        booking = self._create_booking()
        update_booking_status(booking.id, Booking.Status.CONFIRMED, self.staff)

        confirmed = list(list_bookings(self.staff, Booking.Status.CONFIRMED))
        pending = list(list_bookings(self.staff, Booking.Status.PENDING))
        self.assertIn(booking, confirmed)
        self.assertNotIn(booking, pending)

    def test_full_lifecycle_through_proceed(self):
        booking = self._create_booking()
        for status in (Booking.Status.CONFIRMED, Booking.Status.PROCEED, Booking.Status.COMPLETED):
            booking = update_booking_status(booking.id, status, self.staff)
        self.assertEqual(booking.status, Booking.Status.COMPLETED)
        self.assertTrue(booking.is_terminal)

    def test_same_status_is_a_noop(self):
        booking = self._create_booking()
        update_booking_status(booking.id, Booking.Status.CONFIRMED, self.staff)

        with self.captureOnCommitCallbacks() as callbacks:
            again = update_booking_status(booking.id, Booking.Status.CONFIRMED, self.staff)
        self.assertEqual(again.status, Booking.Status.CONFIRMED)
        self.assertEqual(callbacks, [])

    def test_completed_booking_cannot_go_back_to_pending(self):
        booking = self._create_booking()
        update_booking_status(booking.id, Booking.Status.CONFIRMED, self.staff)
        update_booking_status(booking.id, Booking.Status.COMPLETED, self.staff)

        with self.assertRaises(ConflictError):
            update_booking_status(booking.id, Booking.Status.PENDING, self.staff)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.COMPLETED)

    def test_pending_booking_cannot_skip_to_completed(self):
        booking = self._create_booking()
        with self.assertRaises(ConflictError):
            update_booking_status(booking.id, Booking.Status.COMPLETED, self.staff)

    def test_cancelled_is_terminal(self):
        booking = self._create_booking()
        update_booking_status(booking.id, Booking.Status.CANCELLED, self.staff)
        with self.assertRaises(ConflictError):
            update_booking_status(booking.id, Booking.Status.CONFIRMED, self.staff)

    def test_unknown_status_is_invalid(self):
        booking = self._create_booking()
        with self.assertRaises(ValidationError):
            update_booking_status(booking.id, "archived", self.staff)

    def test_unknown_booking_is_not_found(self):
        with self.assertRaises(NotFoundError):
            update_booking_status(999999, Booking.Status.CONFIRMED, self.staff)

    def test_customers_and_anonymous_callers_are_denied(self):
        booking = self._create_booking()
        for user in (self.customer, AnonymousUser()):
            with self.assertRaises(AuthorizationError):
                update_booking_status(booking.id, Booking.Status.CONFIRMED, user)
        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.PENDING)

    def test_status_change_emits_signal_with_previous_status(self):
        booking = self._create_booking()
        received = []

        def receiver(sender, booking, action, previous_status, **kwargs):
            received.append((action, previous_status, booking.status))

        booking_changed.connect(receiver)
        self.addCleanup(booking_changed.disconnect, receiver)

        with self.captureOnCommitCallbacks(execute=True):
            update_booking_status(booking.id, Booking.Status.CONFIRMED, self.staff)

        self.assertEqual(received, [("status_changed", "pending", "confirmed")])


class BookingListTests(RentalTestCase):
    def test_list_is_newest_first(self):
        first = self._create_booking()
        second = self._create_booking(customer_name="Malee Sukjai")
        self.assertEqual(list(list_bookings(self.staff)), [second, first])
        self.assertEqual(list(list_bookings(self.staff, "all")), [second, first])

    def test_unknown_filter_is_invalid(self):
        with self.assertRaises(ValidationError):
            list_bookings(self.staff, "archived")

    def test_list_requires_staff(self):
        with self.assertRaises(AuthorizationError):
            list_bookings(self.customer)


class FleetTests(RentalTestCase):
    def setUp(self):
        super().setUp()
        self.admin = User.objects.create_superuser("boss", "boss@example.com", "SafePass123!")

    def test_seed_fleet_is_installed(self):
        names = set(Vehicle.objects.values_list("name", flat=True))
        self.assertTrue({"Executive Elite", "VIP Royale", "Business Class", "City Cruiser"} <= names)

    def test_public_catalog_only_lists_available_vehicles(self):
        hidden = Vehicle.objects.create(
            name="Hidden Van", model="Ford Transit", seats=12, price_per_day=Decimal("2800"),
            status=Vehicle.Status.HIDDEN,
        )
        public = list(list_fleet())
        self.assertIn(self.vehicle, public)
        self.assertNotIn(hidden, public)

        staff_view = list(list_fleet(self.staff))
        self.assertIn(hidden, staff_view)
        self.assertEqual(list(list_fleet(self.staff, Vehicle.Status.HIDDEN)), [hidden])

    def test_create_vehicle_fills_feature_defaults(self):
        vehicle = create_vehicle(
            self.staff,
            {"name": "Night Owl", "model": "Kia Carnival 2024", "seats": 7, "price_per_day": "3200", "features": {"wifi": True}},
        )
        self.assertEqual(vehicle.features, {"wifi": True, "ac": True, "vip_seats": False})
        self.assertEqual(vehicle.status, Vehicle.Status.AVAILABLE)

    def test_create_vehicle_rejects_unknown_features_and_bad_seats(self):
        with self.assertRaises(ValidationError) as ctx:
            create_vehicle(
                self.staff,
                {"name": "Odd", "model": "Van", "seats": 0, "price_per_day": "100", "features": {"jacuzzi": True}},
            )
        self.assertIn("features", ctx.exception.message_dict)
        self.assertIn("seats", ctx.exception.message_dict)

    def test_create_vehicle_requires_staff(self):
        with self.assertRaises(AuthorizationError):
            create_vehicle(self.customer, {"name": "Nope"})

    def test_update_vehicle_is_partial(self):
        vehicle = update_vehicle(self.staff, self.vehicle.id, {"co2_per_km": "150.5"})
        self.assertEqual(vehicle.name, "Test Cruiser")
        self.assertEqual(vehicle.co2_per_km, Decimal("150.50"))

    def test_set_vehicle_status_emits_signal(self):
        received = []

        def receiver(sender, vehicle, action, **kwargs):
            received.append((vehicle.pk, action))

        vehicle_changed.connect(receiver)
        self.addCleanup(vehicle_changed.disconnect, receiver)

        with self.captureOnCommitCallbacks(execute=True):
            vehicle = set_vehicle_status(self.staff, self.vehicle.id, Vehicle.Status.MAINTENANCE)

        self.assertEqual(vehicle.status, Vehicle.Status.MAINTENANCE)
        self.assertEqual(received, [(self.vehicle.pk, "status_changed")])

    def test_gallery_images_append_and_reorder(self):
        first = add_vehicle_image(self.staff, self.vehicle.id, "https://cdn.example.com/1.jpg")
        second = add_vehicle_image(self.staff, self.vehicle.id, "https://cdn.example.com/2.jpg")
        self.assertEqual((first.sort_order, second.sort_order), (0, 1))

        images = reorder_vehicle_images(self.staff, self.vehicle.id, [second.id, first.id])
        self.assertEqual([image.id for image in images], [second.id, first.id])

        with self.assertRaises(ValidationError):
            reorder_vehicle_images(self.staff, self.vehicle.id, [second.id])

        remove_vehicle_image(self.staff, first.id)
        self.assertEqual(list(self.vehicle.images.all()), [second])

    def test_only_admin_may_delete_and_never_with_bookings(self):
        self._create_booking()
        with self.assertRaises(AuthorizationError):
            delete_vehicle(self.staff, self.vehicle.id)
        with self.assertRaises(ConflictError):
            delete_vehicle(self.admin, self.vehicle.id)
        self.assertTrue(Vehicle.objects.filter(pk=self.vehicle.pk).exists())

        spare = Vehicle.objects.create(name="Spare", model="Van", seats=8, price_per_day=Decimal("1000"))
        delete_vehicle(self.admin, spare.id)
        self.assertFalse(Vehicle.objects.filter(pk=spare.pk).exists())


class DashboardTests(RentalTestCase):
    def test_metrics_count_statuses_and_completed_revenue(self):
        completed = self._create_booking()
        update_booking_status(completed.id, Booking.Status.CONFIRMED, self.staff)
        update_booking_status(completed.id, Booking.Status.COMPLETED, self.staff)
        confirmed = self._create_booking(end_date=date(2025, 6, 11))
        update_booking_status(confirmed.id, Booking.Status.CONFIRMED, self.staff)
        self._create_booking()

        metrics = dashboard_metrics(self.staff)
        self.assertEqual(metrics["bookings_today"], 3)
        self.assertEqual(metrics["pending"], 1)
        self.assertEqual(metrics["confirmed"], 1)
        self.assertEqual(metrics["revenue"], Decimal("5400.00"))
        self.assertEqual(len(metrics["recent_bookings"]), 3)

    def test_revenue_is_zero_without_completed_bookings(self):
        self.assertEqual(dashboard_metrics(self.staff)["revenue"], Decimal("0.00"))

    def test_metrics_require_staff(self):
        with self.assertRaises(AuthorizationError):
            dashboard_metrics(self.customer)


class BookingApiTests(RentalTestCase):
    def _post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def _booking_payload(self, **overrides):
        payload = {
            "vehicle_id": self.vehicle.id,
            "customer_name": "Somchai Jaidee",
            "customer_phone": "089-123-4567",
            "start_date": "2025-06-10",
            "end_date": "2025-06-13",
            "pickup_location": "Suvarnabhumi Airport",
            "pickup_time": "09:30",
        }
        payload.update(overrides)
        return payload

    def test_fleet_api_lists_available_vehicles(self):
        response = self.client.get("/api/fleet/")
        self.assertEqual(response.status_code, 200)
        names = [vehicle["name"] for vehicle in response.json()["vehicles"]]
        self.assertIn("Test Cruiser", names)
        self.assertNotIn("status", response.json()["vehicles"][0])

    def test_create_booking_api_returns_code_and_total(self):
        response = self._post_json("/api/bookings/", self._booking_payload())
        self.assertEqual(response.status_code, 201)

        data = response.json()["booking"]
        self.assertEqual(len(data["booking_code"]), 6)
        self.assertEqual(data["total_price"], "5400.00")
        self.assertEqual(data["status"], "pending")
        self.assertEqual(data["pickup_time"], "09:30:00")

    def test_create_booking_api_reports_field_errors(self):
        response = self._post_json("/api/bookings/", self._booking_payload(customer_phone="12345"))
        self.assertEqual(response.status_code, 400)
        data = response.json()
        self.assertEqual(data["code"], "invalid")
        self.assertIn("customer_phone", data["fields"])

    def test_create_booking_api_rejects_bad_json(self):
        response = self.client.post("/api/bookings/", data="{not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_create_booking_api_unknown_vehicle(self):
        response = self._post_json("/api/bookings/", self._booking_payload(vehicle_id=self.vehicle.id + 1000))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "not_found")
        self.assertNotIn(str(self.vehicle.id + 1000), response.json()["error"])

    def test_create_booking_api_rejects_unavailable_vehicle(self):
        self.vehicle.status = Vehicle.Status.MAINTENANCE
        self.vehicle.save()
        response = self._post_json("/api/bookings/", self._booking_payload())
        self.assertEqual(response.status_code, 400)
        self.assertIn("vehicle_id", response.json()["fields"])

    def test_anonymous_booking_with_csrf_token_from_fleet(self):
        client = Client(enforce_csrf_checks=True)
        response = client.get("/api/fleet/")
        self.assertEqual(response.status_code, 200)
        token = client.cookies["csrftoken"].value

        response = client.post(
            "/api/bookings/",
            data=json.dumps(self._booking_payload()),
            content_type="application/json",
            HTTP_X_CSRFTOKEN=token,
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["booking"]["status"], "pending")

    def test_booking_without_csrf_token_gets_json_error(self):
        client = Client(enforce_csrf_checks=True)
        response = client.post(
            "/api/bookings/",
            data=json.dumps(self._booking_payload()),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "csrf")
        self.assertFalse(Booking.objects.filter(vehicle=self.vehicle).exists())

    def test_lookup_api_round_trip(self):
        booking = self._create_booking()
        response = self.client.get("/api/bookings/lookup/", {"code": f" {booking.booking_code.lower()} "})
        self.assertEqual(response.status_code, 200)
        data = response.json()["booking"]
        self.assertEqual(data["booking_code"], booking.booking_code)
        self.assertEqual(data["vehicle_name"], "Test Cruiser")
        self.assertNotIn("customer_phone", data)

    def test_lookup_api_unknown_code(self):
        response = self.client.get("/api/bookings/lookup/", {"code": "ZZZZZ"})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "not_found")


class StaffApiTests(RentalTestCase):
    def _post_json(self, url, payload):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def test_staff_endpoints_deny_anonymous_and_customers(self):
        booking = self._create_booking()
        response = self._post_json(f"/api/staff/bookings/{booking.id}/status/", {"status": "confirmed"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"error": "Access denied.", "code": "forbidden"})

        self.client.force_login(self.customer)
        response = self.client.get("/api/staff/bookings/")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "Access denied.")

    def test_staff_can_confirm_and_filter(self):
        booking = self._create_booking()
        self.client.force_login(self.staff)

        response = self._post_json(f"/api/staff/bookings/{booking.id}/status/", {"status": "confirmed"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["booking"]["status"], "confirmed")

        response = self.client.get("/api/staff/bookings/", {"status": "confirmed"})
        codes = [item["booking_code"] for item in response.json()["bookings"]]
        self.assertEqual(codes, [booking.booking_code])

        response = self.client.get("/api/staff/bookings/", {"status": "pending"})
        self.assertEqual(response.json()["bookings"], [])

    def test_illegal_transition_is_conflict(self):
        booking = self._create_booking()
        self.client.force_login(self.staff)
        self._post_json(f"/api/staff/bookings/{booking.id}/status/", {"status": "cancelled"})

        response = self._post_json(f"/api/staff/bookings/{booking.id}/status/", {"status": "pending"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "conflict")

    def test_dashboard_api(self):
        self._create_booking()
        self.client.force_login(self.staff)
        response = self.client.get("/api/staff/dashboard/")
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["pending"], 1)
        self.assertEqual(data["revenue"], "0.00")

    def test_staff_vehicle_management(self):
        self.client.force_login(self.staff)
        response = self._post_json(
            "/api/staff/vehicles/",
            {"name": "Night Owl", "model": "Kia Carnival 2024", "seats": 7, "price_per_day": 3200},
        )
        self.assertEqual(response.status_code, 201)
        vehicle_id = response.json()["vehicle"]["id"]

        response = self._post_json(f"/api/staff/vehicles/{vehicle_id}/status/", {"status": "hidden"})
        self.assertEqual(response.json()["vehicle"]["status"], "hidden")

        response = self._post_json(
            f"/api/staff/vehicles/{vehicle_id}/images/", {"image_url": "https://cdn.example.com/owl.jpg"}
        )
        self.assertEqual(response.status_code, 201)

        response = self.client.get("/api/staff/vehicles/", {"status": "hidden"})
        self.assertEqual([item["id"] for item in response.json()["vehicles"]], [vehicle_id])
        self.assertEqual(response.json()["vehicles"][0]["image_url"], "https://cdn.example.com/owl.jpg")

    def test_reorder_rejects_boolean_image_ids(self):
        image = add_vehicle_image(self.staff, self.vehicle.id, "https://cdn.example.com/a.jpg")
        self.client.force_login(self.staff)

        response = self._post_json(
            f"/api/staff/vehicles/{self.vehicle.id}/images/reorder/", {"image_ids": [True]}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("image_ids", response.json()["fields"])

        response = self._post_json(
            f"/api/staff/vehicles/{self.vehicle.id}/images/reorder/", {"image_ids": [image.id]}
        )
        self.assertEqual(response.status_code, 200)


class AdminPanelTests(RentalTestCase):
    def setUp(self):
        super().setUp()
        self.admin = User.objects.create_superuser("boss", "boss@example.com", "SafePass123!")
        self.client.force_login(self.admin)

    def test_confirm_action_goes_through_state_machine(self):
        pending = self._create_booking()
        cancelled = self._create_booking()
        update_booking_status(cancelled.id, Booking.Status.CANCELLED, self.admin)

        response = self.client.post(
            "/admin/rentals/booking/",
            {"action": "mark_confirmed", "_selected_action": [pending.id, cancelled.id]},
        )
        self.assertEqual(response.status_code, 302)

        pending.refresh_from_db()
        cancelled.refresh_from_db()
        self.assertEqual(pending.status, Booking.Status.CONFIRMED)
        self.assertEqual(cancelled.status, Booking.Status.CANCELLED)

    def test_admin_index_carries_metrics(self):
        self._create_booking()
        response = self.client.get("/admin/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["admin_metrics"]["pending"], 1)

    def test_booking_change_form_only_edits_notes(self):
        booking = self._create_booking()
        other = Vehicle.objects.create(name="Spare", model="Toyota Commuter", price_per_day=Decimal("900.00"))

        response = self.client.post(
            f"/admin/rentals/booking/{booking.id}/change/",
            {
                "notes": "VIP guest",
                "vehicle": other.id,
                "start_date": "2025-06-01",
                "end_date": "2025-06-30",
                "total_price": "1.00",
            },
        )
        self.assertEqual(response.status_code, 302)

        booking.refresh_from_db()
        self.assertEqual(booking.notes, "VIP guest")
        self.assertEqual(booking.vehicle_id, self.vehicle.id)
        self.assertEqual(booking.start_date, date(2025, 6, 10))
        self.assertEqual(booking.end_date, date(2025, 6, 13))
        self.assertEqual(booking.total_price, Decimal("5400.00"))

    def _inline_management_data(self):
        data = {}
        for prefix in ("images", "bookings"):
            data.update(
                {
                    f"{prefix}-TOTAL_FORMS": "0",
                    f"{prefix}-INITIAL_FORMS": "0",
                    f"{prefix}-MIN_NUM_FORMS": "0",
                    f"{prefix}-MAX_NUM_FORMS": "1000",
                }
            )
        return data

    def test_vehicle_admin_add_and_delete_emit_signals(self):
        events = []

        def receiver(sender, vehicle, action, **kwargs):
            events.append((vehicle.pk, action))

        vehicle_changed.connect(receiver)
        self.addCleanup(vehicle_changed.disconnect, receiver)

        data = {
            "name": "Admin Van",
            "model": "Toyota Alphard 2024",
            "seats": "7",
            "price_per_day": "2500.00",
            "image_url": "",
            "description": "",
            "features": '{"wifi": true}',
            "co2_per_km": "",
            "status": "available",
        }
        data.update(self._inline_management_data())
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post("/admin/rentals/vehicle/add/", data)
        self.assertEqual(response.status_code, 302)

        vehicle = Vehicle.objects.get(name="Admin Van")
        self.assertEqual(vehicle.features, {"wifi": True, "ac": True, "vip_seats": False})
        self.assertEqual(events, [(vehicle.pk, "created")])

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(f"/admin/rentals/vehicle/{vehicle.pk}/delete/", {"post": "yes"})
        self.assertEqual(response.status_code, 302)
        self.assertFalse(Vehicle.objects.filter(pk=vehicle.pk).exists())
        self.assertEqual(events[-1], (vehicle.pk, "deleted"))
