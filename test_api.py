"""
HTTP API tests for bookings, availability, reviews and authentication
"""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

from fastapi.testclient import TestClient

from main import app, resource_catalog, get_booking_service, get_rating_service
from application.results import BookingOutcome
from api.dependencies import fake_users_db, get_user
from domain.enums import BookingStatus, RejectionReason, ResourceKind
from domain.exceptions import RepositoryUnavailableError
from infrastructure.config import ACCESS_TOKEN_EXPIRE_MINUTES
from infrastructure.security import create_access_token, decode_access_token, get_password_hash, verify_password

from conftest import GUIDE_RECORD, HOTEL_ROOM_RECORD, VEHICLE_RECORD


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def client():
    """FastAPI test client"""
    return TestClient(app)


def _headers(client, username, password):
    response = client.post("/token", data={"username": username, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client):
    return _headers(client, "admin", "admin123")


@pytest.fixture
def auth_headers(client):
    """Headers for the tourist account"""
    return _headers(client, "tourist", "tourist123")


@pytest.fixture
def other_headers(client):
    return _headers(client, "traveller", "traveller123")


@pytest.fixture
def register():
    """Register a catalog record under a fresh id"""
    def _register(kind, record):
        resource_id = f"{kind.value}-{uuid4().hex[:8]}"
        resource_catalog.register(kind, resource_id, record)
        return resource_id
    return _register


def _day(offset):
    """UTC midnight ``offset`` days from today, as an ISO string"""
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return (today + timedelta(days=offset)).strftime("%Y-%m-%dT%H:%M:%SZ")


def _vehicle_payload(resource_id, start=10, end=12, guests=2):
    return {
        "resourceId": resource_id,
        "resourceKind": "vehicle",
        "checkIn": _day(start),
        "checkOut": _day(end),
        "guests": guests,
    }


# ============================================================================
# AUTH
# ============================================================================

class TestSecurity:
    """Test security functions"""

    @pytest.mark.unit
    @pytest.mark.infrastructure
    @pytest.mark.security
    def test_password_hashing(self):
        hashed = get_password_hash("secret_pass_1")
        assert hashed != "secret_pass_1"
        assert verify_password("secret_pass_1", hashed) is True
        assert verify_password("wrong", hashed) is False

    @pytest.mark.unit
    @pytest.mark.infrastructure
    @pytest.mark.security
    def test_token_round_trip(self):
        token = create_access_token({"sub": "tourist"})
        assert decode_access_token(token)["sub"] == "tourist"

    @pytest.mark.unit
    @pytest.mark.infrastructure
    @pytest.mark.security
    def test_get_user(self):
        user = get_user(fake_users_db, "admin")
        assert user.username == "admin"
        assert user.is_admin
        assert get_user(fake_users_db, "nobody") is None


class TestAuthenticationAPI:
    """Test authentication endpoints"""

    @pytest.mark.api
    def test_login_success(self, client):
        response = client.post("/token", data={"username": "tourist", "password": "tourist123"})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

    @pytest.mark.api
    @pytest.mark.security
    def test_login_token_uses_configured_lifetime(self, client):
        before = datetime.now(timezone.utc)
        token = client.post("/token", data={"username": "tourist", "password": "tourist123"}).json()["access_token"]

        expires = datetime.fromtimestamp(decode_access_token(token)["exp"], tz=timezone.utc)
        lifetime = expires - before
        assert timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES) - timedelta(seconds=5) <= lifetime
        assert lifetime <= timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES) + timedelta(seconds=5)

    @pytest.mark.api
    def test_login_wrong_password(self, client):
        response = client.post("/token", data={"username": "tourist", "password": "nope"})
        assert response.status_code == 401

    @pytest.mark.api
    def test_users_me(self, client, auth_headers):
        response = client.get("/users/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["role"] == "tourist"

    @pytest.mark.api
    def test_protected_endpoint_requires_token(self, client):
        response = client.get("/api/bookings/my")
        assert response.status_code == 401

    @pytest.mark.api
    def test_invalid_token(self, client):
        response = client.get("/api/bookings/my", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestHealthAndEnumsAPI:
    """Test health and enum reference endpoints"""

    @pytest.mark.api
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.api
    def test_booking_status_enum(self, client):
        values = client.get("/api/enums/booking-status").json()["values"]
        assert values == ["pending", "confirmed", "in_progress", "completed", "cancelled"]

    @pytest.mark.api
    def test_resource_kind_enum(self, client):
        values = client.get("/api/enums/resource-kind").json()["values"]
        assert set(values) == {"guide", "vehicle", "hotelRoom"}

    @pytest.mark.api
    def test_rejection_reason_enum(self, client):
        values = client.get("/api/enums/rejection-reason").json()["values"]
        assert set(values) == {reason.value for reason in RejectionReason}
        assert all(values.values())


# ============================================================================
# BOOKINGS
# ============================================================================

class TestBookingAPI:
    """Test booking endpoints"""

    @pytest.mark.api
    def test_create_vehicle_booking(self, client, auth_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)

        response = client.post("/api/bookings", json=_vehicle_payload(vehicle_id), headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["payment_status"] == "pending"
        assert data["duration_days"] == 2
        assert Decimal(data["total_amount"]) == Decimal("16000")
        assert data["currency"] == "LKR"

    @pytest.mark.api
    def test_create_guide_booking_with_date_names(self, client, auth_headers, register):
        guide_id = register(ResourceKind.GUIDE, GUIDE_RECORD)
        payload = {
            "resourceId": guide_id,
            "resourceKind": "guide",
            "startDate": _day(5),
            "endDate": _day(6),
            "participants": 3,
            "meeting_point": "Kandy station",
            "payment_method": "cash",
        }

        response = client.post("/api/bookings", json=payload, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["meeting_point"] == "Kandy station"
        assert Decimal(response.json()["total_amount"]) == Decimal("8000")

    @pytest.mark.api
    def test_create_hotel_booking_with_guest_breakdown(self, client, auth_headers, register):
        room_id = register(ResourceKind.HOTEL_ROOM, HOTEL_ROOM_RECORD)
        payload = {
            "resourceId": room_id,
            "resourceKind": "hotelRoom",
            "checkIn": _day(7),
            "checkOut": _day(9),
            "guests": {"adults": 1, "children": 1, "infants": 0},
        }

        response = client.post("/api/bookings", json=payload, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["party_size"] == 2
        assert Decimal(response.json()["total_amount"]) == Decimal("24000")
        assert response.json()["currency"] == "USD"

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_guest_breakdown_counts_toward_capacity(self, client, auth_headers, register):
        room_id = register(ResourceKind.HOTEL_ROOM, HOTEL_ROOM_RECORD)
        payload = {
            "resourceId": room_id,
            "resourceKind": "hotelRoom",
            "checkIn": _day(7),
            "checkOut": _day(9),
            "guests": {"adults": 2, "children": 1},
        }

        too_many = client.post("/api/bookings", json=payload, headers=auth_headers)
        no_adult = client.post(
            "/api/bookings", json={**payload, "guests": {"adults": 0, "children": 2}}, headers=auth_headers
        )

        assert too_many.status_code == 400
        assert too_many.json()["detail"]["error"] == "CapacityExceeded"
        assert no_adult.status_code == 422
        assert no_adult.json()["detail"]["error"] == "ValidationError"

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_capacity_exceeded(self, client, auth_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)

        response = client.post("/api/bookings", json=_vehicle_payload(vehicle_id, guests=5), headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "CapacityExceeded"

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_end_before_start(self, client, auth_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)

        response = client.post(
            "/api/bookings", json=_vehicle_payload(vehicle_id, start=12, end=10), headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "InvalidInterval"

    @pytest.mark.api
    def test_unknown_resource(self, client, auth_headers):
        response = client.post("/api/bookings", json=_vehicle_payload("no-such-vehicle"), headers=auth_headers)
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "NotFound"

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_double_booking_conflicts(self, client, auth_headers, other_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        client.post("/api/bookings", json=_vehicle_payload(vehicle_id), headers=auth_headers)

        response = client.post(
            "/api/bookings", json=_vehicle_payload(vehicle_id, start=11, end=13), headers=other_headers
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "BookingConflict"

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_missing_fields(self, client, auth_headers):
        response = client.post("/api/bookings", json={"resourceKind": "vehicle"}, headers=auth_headers)

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "ValidationError"
        assert {"resource_id", "start", "end", "party_size"} <= {e["field"] for e in detail["errors"]}

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_zero_party_size(self, client, auth_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        response = client.post("/api/bookings", json=_vehicle_payload(vehicle_id, guests=0), headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.api
    def test_get_booking_owner_only(self, client, auth_headers, other_headers, admin_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        booking_id = client.post(
            "/api/bookings", json=_vehicle_payload(vehicle_id), headers=auth_headers
        ).json()["booking_id"]

        assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers).status_code == 200
        assert client.get(f"/api/bookings/{booking_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/bookings/{booking_id}", headers=other_headers).status_code == 403
        assert client.get(f"/api/bookings/{uuid4()}", headers=auth_headers).status_code == 404

    @pytest.mark.api
    def test_invalid_booking_id(self, client, auth_headers):
        response = client.get("/api/bookings/not-a-uuid", headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.api
    def test_cancel_booking(self, client, auth_headers, other_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        booking_id = client.post(
            "/api/bookings", json=_vehicle_payload(vehicle_id), headers=auth_headers
        ).json()["booking_id"]
        url = f"/api/bookings/{booking_id}/cancel"

        stranger = client.put(url, json={"reason": "not mine"}, headers=other_headers)
        owner = client.put(url, json={"reason": "Change of plans"}, headers=auth_headers)
        again = client.put(url, json={"reason": "again"}, headers=auth_headers)

        assert stranger.status_code == 403
        assert stranger.json()["detail"]["error"] == "Forbidden"
        assert owner.status_code == 200
        assert owner.json()["status"] == "cancelled"
        assert owner.json()["cancellation_reason"] == "Change of plans"
        assert owner.json()["cancellation_date"] is not None
        assert again.status_code == 409
        assert again.json()["detail"]["error"] == "AlreadyTerminal"

    @pytest.mark.api
    def test_update_status_admin_only(self, client, auth_headers, admin_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        booking_id = client.post(
            "/api/bookings", json=_vehicle_payload(vehicle_id), headers=auth_headers
        ).json()["booking_id"]
        url = f"/api/bookings/{booking_id}/status"

        tourist = client.put(url, json={"status": "confirmed"}, headers=auth_headers)
        admin = client.put(url, json={"status": "confirmed"}, headers=admin_headers)
        backwards = client.put(url, json={"status": "pending"}, headers=admin_headers)

        assert tourist.status_code == 403
        assert admin.status_code == 200
        assert admin.json()["status"] == "confirmed"
        assert backwards.status_code == 409
        assert backwards.json()["detail"]["error"] == "InvalidTransition"

    @pytest.mark.api
    def test_hotel_room_rejects_in_progress(self, client, auth_headers, admin_headers, register):
        room_id = register(ResourceKind.HOTEL_ROOM, HOTEL_ROOM_RECORD)
        payload = {
            "resourceId": room_id,
            "resourceKind": "hotelRoom",
            "checkIn": _day(3),
            "checkOut": _day(5),
            "guests": 2,
        }
        booking_id = client.post("/api/bookings", json=payload, headers=auth_headers).json()["booking_id"]
        url = f"/api/bookings/{booking_id}/status"

        client.put(url, json={"status": "confirmed"}, headers=admin_headers)
        response = client.put(url, json={"status": "in_progress"}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "InvalidTransition"

    @pytest.mark.api
    def test_my_bookings_paginated(self, client, other_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        for start in (20, 23, 26):
            client.post("/api/bookings", json=_vehicle_payload(vehicle_id, start, start + 1), headers=other_headers)

        response = client.get("/api/bookings/my", params={"page": 1, "limit": 2}, headers=other_headers)

        assert response.status_code == 200
        pagination = response.json()["pagination"]
        assert len(response.json()["bookings"]) == 2
        assert pagination["current_page"] == 1
        assert pagination["total_bookings"] >= 3
        assert pagination["has_next_page"] is True
        assert pagination["has_prev_page"] is False

    @pytest.mark.api
    def test_my_bookings_status_filter(self, client, other_headers):
        response = client.get("/api/bookings/my", params={"status": "cancelled"}, headers=other_headers)
        assert response.status_code == 200
        assert all(b["status"] == "cancelled" for b in response.json()["bookings"])

    @pytest.mark.api
    def test_my_booking_stats(self, client, auth_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        before = client.get("/api/bookings/my/stats", headers=auth_headers).json()
        client.post("/api/bookings", json=_vehicle_payload(vehicle_id), headers=auth_headers)

        after = client.get("/api/bookings/my/stats", headers=auth_headers).json()

        assert after["total"] == before["total"] + 1
        assert after["pending"] == before["pending"] + 1
        assert Decimal(after["total_amount"]) - Decimal(before["total_amount"]) == Decimal("16000")

    @pytest.mark.api
    def test_expire_pending_admin_only(self, client, auth_headers, admin_headers):
        assert client.post("/api/bookings/expire-pending", headers=auth_headers).status_code == 403

        response = client.post("/api/bookings/expire-pending", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["expired"] == len(response.json()["booking_ids"])


class TestAvailabilityAPI:
    """Test availability endpoint"""

    @pytest.mark.api
    def test_availability_reflects_bookings(self, client, auth_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        client.post("/api/bookings", json=_vehicle_payload(vehicle_id), headers=auth_headers)

        busy = client.get("/api/availability", params={
            "resource_kind": "vehicle", "resource_id": vehicle_id, "start": _day(11), "end": _day(14),
        }, headers=auth_headers)
        free = client.get("/api/availability", params={
            "resource_kind": "vehicle", "resource_id": vehicle_id, "start": _day(12), "end": _day(14),
        }, headers=auth_headers)

        assert busy.status_code == 200
        assert busy.json()["is_available"] is False
        assert busy.json()["conflicting_bookings"] == 1
        assert busy.json()["nights"] == 3
        assert free.json()["is_available"] is True

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_availability_inverted_range(self, client, auth_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        response = client.get("/api/availability", params={
            "resource_kind": "vehicle", "resource_id": vehicle_id, "start": _day(5), "end": _day(4),
        }, headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.api
    def test_availability_unknown_resource(self, client, auth_headers):
        response = client.get("/api/availability", params={
            "resource_kind": "guide", "resource_id": "ghost", "start": _day(4), "end": _day(5),
        }, headers=auth_headers)
        assert response.status_code == 404


class TestReviewAPI:
    """Test review and rating endpoints"""

    @pytest.mark.api
    def test_rating_distribution(self, client, auth_headers, other_headers, admin_headers, register):
        guide_id = register(ResourceKind.GUIDE, GUIDE_RECORD)
        for rating, headers in [(5, auth_headers), (4, other_headers), (1, admin_headers)]:
            response = client.post("/api/reviews", json={
                "resource_id": guide_id, "resource_kind": "guide", "rating": rating,
            }, headers=headers)
            assert response.status_code == 201

        summary = client.get(f"/api/resources/guide/{guide_id}/ratings").json()
        reviews = client.get(f"/api/resources/guide/{guide_id}/reviews").json()

        assert summary["distribution"] == {"5": 1, "4": 1, "3": 0, "2": 0, "1": 1}
        assert summary["average_rating"] == 3.3
        assert summary["total_reviews"] == 3
        assert len(reviews) == 3

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_second_review_is_conflict(self, client, auth_headers, register):
        vehicle_id = register(ResourceKind.VEHICLE, VEHICLE_RECORD)
        payload = {"resource_id": vehicle_id, "resource_kind": "vehicle", "rating": 5}

        first = client.post("/api/reviews", json=payload, headers=auth_headers)
        second = client.post("/api/reviews", json=payload, headers=auth_headers)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["detail"]["error"] == "AlreadyReviewed"
        assert client.get(f"/api/resources/vehicle/{vehicle_id}/ratings").json()["total_reviews"] == 1

    @pytest.mark.api
    def test_rating_distribution_without_reviews(self, client, register):
        room_id = register(ResourceKind.HOTEL_ROOM, HOTEL_ROOM_RECORD)
        summary = client.get(f"/api/resources/hotelRoom/{room_id}/ratings").json()
        assert summary["average_rating"] == 0
        assert summary["total_reviews"] == 0

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_rating_out_of_range(self, client, auth_headers, register):
        guide_id = register(ResourceKind.GUIDE, GUIDE_RECORD)
        response = client.post("/api/reviews", json={
            "resource_id": guide_id, "resource_kind": "guide", "rating": 6,
        }, headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.api
    def test_unknown_resource(self, client, auth_headers):
        response = client.post("/api/reviews", json={
            "resource_id": "ghost", "resource_kind": "vehicle", "rating": 4,
        }, headers=auth_headers)
        assert response.status_code == 404
        assert client.get("/api/resources/vehicle/ghost/ratings").status_code == 404


# ============================================================================
# FAILURE HANDLING
# ============================================================================

class TestAPIMockErrors:
    """Test infrastructure failure handling using mocks"""

    def setup_method(self):
        self.mock_booking_service = AsyncMock()
        self.mock_rating_service = AsyncMock()
        app.dependency_overrides[get_booking_service] = lambda: self.mock_booking_service
        app.dependency_overrides[get_rating_service] = lambda: self.mock_rating_service

    def teardown_method(self):
        app.dependency_overrides = {}

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_repository_unavailable_is_503(self, client, auth_headers):
        self.mock_booking_service.create_booking.side_effect = RepositoryUnavailableError("store down")

        response = client.post("/api/bookings", json=_vehicle_payload("vehicle-x"), headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "ServiceUnavailable"

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_rating_store_unavailable_is_503(self, client):
        self.mock_rating_service.get_rating_distribution.side_effect = RepositoryUnavailableError("store down")
        response = client.get("/api/resources/guide/any/ratings")
        assert response.status_code == 503

    @pytest.mark.api
    @pytest.mark.edge_case
    def test_unexpected_error_is_500(self, auth_headers):
        self.mock_booking_service.get_booking_stats.side_effect = RuntimeError("boom")
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/api/bookings/my/stats", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "InternalError"
        assert "boom" not in response.text

    @pytest.mark.api
    def test_status_update_passes_requester(self, client, admin_headers):
        self.mock_booking_service.update_booking_status.return_value = BookingOutcome.rejected(
            RejectionReason.NOT_FOUND, "Booking not found"
        )
        booking_id = uuid4()

        response = client.put(f"/api/bookings/{booking_id}/status", json={"status": "confirmed"}, headers=admin_headers)

        assert response.status_code == 404
        args = self.mock_booking_service.update_booking_status.call_args.args
        assert args[0] == booking_id
        assert args[1] == BookingStatus.CONFIRMED
        assert args[2].username == "admin"
