"""Domain Entities"""
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from typing import Optional
from decimal import Decimal

from domain.enums import BookingStatus, PaymentStatus, PaymentMethod, ResourceKind
from domain.value_objects import ONE_DAY

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(BaseModel):
    """Booking record.

    Plain data: admissibility, pricing and status transitions live in the
    reservation validator, price calculator and booking service. A booking is
    never deleted; cancellation is a status.
    """
    model_config = ConfigDict(from_attributes=True)

    # Identity
    booking_id: UUID = Field(default_factory=uuid4)

    # References to other contexts
    resource_id: str
    resource_kind: ResourceKind
    requester_id: UUID

    # Reservation
    start: datetime
    end: datetime
    party_size: int = Field(ge=1)

    # Price locked at creation
    total_amount: Decimal = Field(ge=0)
    currency: str

    # Status
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING

    # Optional details
    special_requests: Optional[str] = None
    meeting_point: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    tour_type: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancellation_date: Optional[datetime] = None

    # Metadata
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def duration_days(self) -> int:
        return -((self.start - self.end) // ONE_DAY)


class Review(BaseModel):
    """Review left by a user for a guide, vehicle or hotel room"""
    model_config = ConfigDict(from_attributes=True)

    review_id: UUID = Field(default_factory=uuid4)
    resource_id: str
    resource_kind: ResourceKind
    user_id: UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
