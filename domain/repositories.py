"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List, Tuple
from uuid import UUID
from datetime import datetime

from domain.entities import Booking, Review
from domain.enums import BookingStatus, ResourceKind
from domain.value_objects import ResourceSnapshot


class BookingRepository(ABC):
    """Repository interface for Booking records. Bookings are never deleted."""

    @abstractmethod
    async def add_if_no_overlap(self, booking: Booking, units: int) -> Booking:
        """Insert booking unless ``units`` active bookings already overlap it.

        The check and the insert are atomic per resource. Raises
        OverlappingBookingError when the resource is fully booked.
        """
        pass

    @abstractmethod
    async def find_by_id(self, booking_id: UUID) -> Optional[Booking]:
        """Find booking by ID"""
        pass

    @abstractmethod
    async def find_by_requester(
        self,
        requester_id: UUID,
        status: Optional[BookingStatus] = None,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> Tuple[List[Booking], int]:
        """Page of a requester's bookings (newest first) and the total match count"""
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        resource_kind: ResourceKind,
        resource_id: str,
        start: datetime,
        end: datetime
    ) -> List[Booking]:
        """Active bookings for a resource whose interval intersects [start, end)"""
        pass

    @abstractmethod
    async def find_pending_created_before(self, cutoff: datetime) -> List[Booking]:
        """Pending bookings created strictly before ``cutoff``"""
        pass

    @abstractmethod
    async def update(self, booking: Booking) -> Booking:
        """Update booking"""
        pass


class ResourceCatalog(ABC):
    """Read-only access to guides, vehicles and hotel rooms"""

    @abstractmethod
    async def get_snapshot(self, kind: ResourceKind, resource_id: str) -> Optional[ResourceSnapshot]:
        """Snapshot of a resource, or None when it does not exist"""
        pass


class ReviewRepository(ABC):
    """Repository interface for Review records"""

    @abstractmethod
    async def save(self, review: Review) -> Review:
        """Save review"""
        pass

    @abstractmethod
    async def find_by_resource(self, kind: ResourceKind, resource_id: str) -> List[Review]:
        """All reviews for a resource, newest first"""
        pass

    @abstractmethod
    async def find_by_user_and_resource(self, user_id: UUID, kind: ResourceKind, resource_id: str) -> Optional[Review]:
        """The review a user left for a resource, if any"""
        pass
