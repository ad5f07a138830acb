"""Application result types returned by the services"""
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from domain.entities import Booking, Review
from domain.enums import BookingStatus, RejectionReason
from domain.value_objects import Rejection


class BookingOutcome(BaseModel):
    """Either the booking an operation produced or the reason it was refused"""
    model_config = ConfigDict(frozen=True)

    booking: Optional[Booking] = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @classmethod
    def accepted(cls, booking: Booking) -> "BookingOutcome":
        return cls(booking=booking)

    @classmethod
    def rejected(cls, reason: RejectionReason, detail: Optional[str] = None) -> "BookingOutcome":
        return cls(rejection=Rejection.of(reason, detail))


class ReviewOutcome(BaseModel):
    """Either the stored review or the reason it was refused"""
    model_config = ConfigDict(frozen=True)

    review: Optional[Review] = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @classmethod
    def rejected(cls, reason: RejectionReason, detail: Optional[str] = None) -> "ReviewOutcome":
        return cls(rejection=Rejection.of(reason, detail))


class BookingPage(BaseModel):
    bookings: List[Booking]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class BookingStats(BaseModel):
    total: int
    by_status: Dict[BookingStatus, int]
    total_amount: Decimal


class AvailabilityReport(BaseModel):
    is_available: bool
    resource_available: bool
    conflicting_bookings: int
    units: int
    start: datetime
    end: datetime
    nights: int
