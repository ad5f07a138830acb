"""Domain Value Objects"""
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID
from typing import Dict, List, Optional, Union

from domain.enums import ResourceKind, RejectionReason, PaymentMethod

ONE_DAY = timedelta(days=1)

_DATETIME = TypeAdapter(datetime)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive timestamps as UTC so every comparison is between aware datetimes"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Interval(BaseModel):
    """Value Object for a half-open time range [start, end)"""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator('start', 'end')
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode='after')
    def end_after_start(self) -> "Interval":
        if self.end <= self.start:
            raise ValueError('End must be after start')
        return self

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start < ensure_utc(end) and self.end > ensure_utc(start)

    def duration_days(self) -> int:
        """Whole days covered, any started day counts as a full day"""
        return -((self.start - self.end) // ONE_DAY)


class BlackoutPeriod(BaseModel):
    """A half-open period during which a resource cannot be booked"""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    reason: Optional[str] = None

    @field_validator('start', 'end')
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @classmethod
    def for_day(cls, value: Union[date, datetime, str]) -> "BlackoutPeriod":
        """The whole UTC day containing ``value``"""
        if isinstance(value, datetime):
            moment = value
        elif isinstance(value, date):
            moment = datetime(value.year, value.month, value.day)
        else:
            moment = _DATETIME.validate_python(value)
        day = ensure_utc(moment).replace(hour=0, minute=0, second=0, microsecond=0)
        return cls(start=day, end=day + ONE_DAY)


class Money(BaseModel):
    """Value Object for monetary amounts"""
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(ge=0)
    currency: str = "LKR"


class ResourceSnapshot(BaseModel):
    """Read-only, point-in-time view of a bookable resource"""
    model_config = ConfigDict(frozen=True)

    resource_id: str
    kind: ResourceKind
    capacity: int = Field(ge=0)
    daily_rate: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    weekly_rate: Optional[Decimal] = None
    currency: str = "LKR"
    is_available: bool = True
    blackout_dates: List[BlackoutPeriod] = []
    units: int = Field(ge=1, default=1)


class BookingRequest(BaseModel):
    """Booking request as accepted by the engine"""
    model_config = ConfigDict(frozen=True)

    requester_id: UUID
    resource_id: str
    resource_kind: ResourceKind
    start: datetime
    end: datetime
    party_size: int = Field(ge=1)
    special_requests: Optional[str] = Field(None, max_length=500)
    meeting_point: Optional[str] = Field(None, max_length=200)
    payment_method: Optional[PaymentMethod] = None
    tour_type: Optional[str] = None

    @field_validator('start', 'end')
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)


REJECTION_MESSAGES: Dict[RejectionReason, str] = {
    RejectionReason.VALIDATION_ERROR: "Request is missing required fields or contains invalid values",
    RejectionReason.NOT_FOUND: "Resource or booking not found",
    RejectionReason.RESOURCE_UNAVAILABLE: "Resource is not available for booking",
    RejectionReason.INVALID_INTERVAL: "Start must be in the future and end must be after start",
    RejectionReason.CAPACITY_EXCEEDED: "Party size exceeds resource capacity",
    RejectionReason.BLACKOUT_CONFLICT: "Requested dates overlap a blackout period",
    RejectionReason.BOOKING_CONFLICT: "Resource is already booked for the selected dates",
    RejectionReason.FORBIDDEN: "Access denied",
    RejectionReason.ALREADY_TERMINAL: "Booking is already cancelled or completed",
    RejectionReason.INVALID_TRANSITION: "Booking cannot move to the requested status",
    RejectionReason.ALREADY_REVIEWED: "You have already reviewed this resource",
}


class Rejection(BaseModel):
    """Typed reason a request could not be carried out"""
    model_config = ConfigDict(frozen=True)

    reason: RejectionReason
    message: str
    detail: Optional[str] = None

    @classmethod
    def of(cls, reason: RejectionReason, detail: Optional[str] = None) -> "Rejection":
        return cls(reason=reason, message=REJECTION_MESSAGES[reason], detail=detail)


class ReservationCheck(BaseModel):
    """Outcome of validating a booking request against a snapshot"""
    model_config = ConfigDict(frozen=True)

    interval: Optional[Interval] = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


class RatingDistribution(BaseModel):
    """Count-per-star breakdown of a review set"""
    model_config = ConfigDict(frozen=True)

    distribution: Dict[int, int]
    average_rating: float
    total_reviews: int
