"""In-Memory Repository Implementations"""
import asyncio
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID
from datetime import datetime

from domain.repositories import BookingRepository, ResourceCatalog, ReviewRepository
from domain.entities import Booking, Review
from domain.enums import BookingStatus, ResourceKind
from domain.exceptions import OverlappingBookingError
from domain.resource_kinds import ResourceKindProfile
from domain.value_objects import ResourceSnapshot, ensure_utc

ResourceKey = Tuple[ResourceKind, str]


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of BookingRepository.

    Stored records are copies, so callers only change persisted state through
    ``add_if_no_overlap`` and ``update``.
    """

    def __init__(self):
        self._storage: Dict[UUID, Booking] = {}
        self._locks: Dict[ResourceKey, asyncio.Lock] = {}

    def _lock_for(self, key: ResourceKey) -> asyncio.Lock:
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def _overlapping(self, kind: ResourceKind, resource_id: str, start: datetime, end: datetime) -> List[Booking]:
        start, end = ensure_utc(start), ensure_utc(end)
        return [
            b for b in self._storage.values()
            if b.resource_kind == kind
            and b.resource_id == resource_id
            and b.is_active
            and b.start < end and b.end > start
        ]

    async def add_if_no_overlap(self, booking: Booking, units: int) -> Booking:
        """Insert booking while holding the resource's lock"""
        async with self._lock_for((booking.resource_kind, booking.resource_id)):
            overlapping = self._overlapping(
                booking.resource_kind, booking.resource_id, booking.start, booking.end
            )
            if len(overlapping) >= units:
                raise OverlappingBookingError(booking.resource_id, len(overlapping))
            self._storage[booking.booking_id] = booking.model_copy(deep=True)
        return booking

    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        booking = self._storage.get(booking_id)
        return booking.model_copy(deep=True) if booking else None

    async def find_by_requester(
        self,
        requester_id: UUID,
        status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> Tuple[List[Booking], int]:
        """Page of a requester's bookings, newest first"""
        matches = [
            b for b in self._storage.values()
            if b.requester_id == requester_id and (status is None or b.status == status)
        ]
        matches.sort(key=lambda b: b.created_at, reverse=True)
        page = matches[skip:] if limit is None else matches[skip:skip + limit]
        return [b.model_copy(deep=True) for b in page], len(matches)

    async def find_overlapping(
        self,
        resource_kind: ResourceKind,
        resource_id: str,
        start: datetime,
        end: datetime
    ) -> List[Booking]:
        """Active bookings for a resource intersecting [start, end)"""
        return [b.model_copy(deep=True) for b in self._overlapping(resource_kind, resource_id, start, end)]

    async def find_pending_created_before(self, cutoff: datetime) -> List[Booking]:
        """Pending bookings older than cutoff"""
        cutoff = ensure_utc(cutoff)
        return [
            b.model_copy(deep=True) for b in self._storage.values()
            if b.status == BookingStatus.PENDING and b.created_at < cutoff
        ]

    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        if booking.booking_id in self._storage:
            self._storage[booking.booking_id] = booking.model_copy(deep=True)
            return booking
        raise ValueError("Booking not found")


class InMemoryResourceCatalog(ResourceCatalog):
    """Catalog backed by raw guide, vehicle and hotel room records"""

    def __init__(self, profiles: Dict[ResourceKind, ResourceKindProfile], default_currency: str):
        self._profiles = profiles
        self._default_currency = default_currency
        self._records: Dict[ResourceKey, Mapping[str, Any]] = {}

    def register(self, kind: ResourceKind, resource_id: str, record: Mapping[str, Any]) -> None:
        """Add or replace a catalog record"""
        self._records[(kind, resource_id)] = record

    async def get_snapshot(self, kind: ResourceKind, resource_id: str) -> Optional[ResourceSnapshot]:
        """Snapshot built through the kind's profile"""
        record = self._records.get((kind, resource_id))
        if record is None:
            return None
        return self._profiles[kind].to_snapshot(resource_id, record, self._default_currency)


class InMemoryReviewRepository(ReviewRepository):
    """In-memory implementation of ReviewRepository"""

    def __init__(self):
        self._storage: Dict[UUID, Review] = {}

    async def save(self, review: Review) -> Review:
        """Save review to memory"""
        self._storage[review.review_id] = review
        return review

    async def find_by_resource(self, kind: ResourceKind, resource_id: str) -> List[Review]:
        """All reviews for a resource, newest first"""
        reviews = [
            r for r in self._storage.values()
            if r.resource_kind == kind and r.resource_id == resource_id
        ]
        return sorted(reviews, key=lambda r: r.created_at, reverse=True)

    async def find_by_user_and_resource(self, user_id: UUID, kind: ResourceKind, resource_id: str) -> Optional[Review]:
        """The review a user left for a resource, if any"""
        for review in self._storage.values():
            if review.user_id == user_id and review.resource_kind == kind and review.resource_id == resource_id:
                return review
        return None
