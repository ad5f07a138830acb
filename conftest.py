"""Shared fixtures for the booking engine tests"""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from application.services import BookingService, RatingService
from domain.auth import User
from domain.enums import ResourceKind, UserRole
from domain.resource_kinds import build_profiles
from domain.value_objects import BookingRequest, ResourceSnapshot
from infrastructure.repositories.in_memory_repositories import (
    InMemoryBookingRepository, InMemoryResourceCatalog, InMemoryReviewRepository
)


# ============================================================================
# CATALOG RECORDS
# ============================================================================

GUIDE_RECORD = {
    "name": "Kamal Perera",
    "services": {"groupSize": {"min": 1, "max": 4}},
    "pricing": {"daily": 8000, "hourly": 1500, "currency": "LKR"},
    "availability": {"isAvailable": True},
}

GUIDE_WITHOUT_RATE_RECORD = {
    "name": "Nimal Silva",
    "availability": {"isAvailable": True},
}

VEHICLE_RECORD = {
    "brand": "Toyota",
    "model": "HiAce",
    "capacity": 4,
    "status": "active",
    "pricing": {"daily": 8000, "currency": "LKR"},
    "availability": {"isAvailable": True},
}

INACTIVE_VEHICLE_RECORD = {
    **VEHICLE_RECORD,
    "status": "maintenance",
}

HOTEL_ROOM_RECORD = {
    "type": "Deluxe",
    "capacity": 2,
    "price": 12000,
    "currency": "USD",
    "isAvailable": True,
    "availableRooms": 2,
}


@pytest.fixture
def now():
    return datetime(2030, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def profiles():
    return build_profiles(default_guide_capacity=20)


@pytest.fixture
def booking_repository():
    return InMemoryBookingRepository()


@pytest.fixture
def review_repository():
    return InMemoryReviewRepository()


@pytest.fixture
def resource_catalog(profiles):
    catalog = InMemoryResourceCatalog(profiles, default_currency="LKR")
    catalog.register(ResourceKind.GUIDE, "guide-1", GUIDE_RECORD)
    catalog.register(ResourceKind.GUIDE, "guide-norate", GUIDE_WITHOUT_RATE_RECORD)
    catalog.register(ResourceKind.VEHICLE, "vehicle-1", VEHICLE_RECORD)
    catalog.register(ResourceKind.VEHICLE, "vehicle-inactive", INACTIVE_VEHICLE_RECORD)
    catalog.register(ResourceKind.HOTEL_ROOM, "room-1", HOTEL_ROOM_RECORD)
    return catalog


@pytest.fixture
def booking_service(booking_repository, resource_catalog, profiles):
    return BookingService(booking_repository, resource_catalog, profiles, default_daily_rate=Decimal("15000"))


@pytest.fixture
def rating_service(review_repository, resource_catalog):
    return RatingService(review_repository, resource_catalog)


# ============================================================================
# REQUESTERS
# ============================================================================

@pytest.fixture
def owner():
    return User(username="owner", role=UserRole.TOURIST)


@pytest.fixture
def other_user():
    return User(username="stranger", role=UserRole.TOURIST)


@pytest.fixture
def admin():
    return User(username="admin", role=UserRole.ADMIN)


# ============================================================================
# BUILDERS
# ============================================================================

@pytest.fixture
def make_request(now, owner):
    """Build a BookingRequest relative to ``now``, in days"""
    def _make(
        resource_id="vehicle-1",
        kind=ResourceKind.VEHICLE,
        start_in=1,
        end_in=3,
        party_size=2,
        requester_id=None,
        **extra
    ):
        return BookingRequest(
            requester_id=requester_id or owner.user_id,
            resource_id=resource_id,
            resource_kind=kind,
            start=now + timedelta(days=start_in),
            end=now + timedelta(days=end_in),
            party_size=party_size,
            **extra
        )
    return _make


@pytest.fixture
def make_snapshot():
    def _make(**overrides):
        values = {
            "resource_id": "res-1",
            "kind": ResourceKind.VEHICLE,
            "capacity": 4,
            "daily_rate": Decimal("8000"),
            "currency": "LKR",
            "is_available": True,
        }
        values.update(overrides)
        return ResourceSnapshot(**values)
    return _make

