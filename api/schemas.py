"""API Schemas - Request and Response DTOs"""
from pydantic import AliasChoices, BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import Any, Dict, List, Optional

from domain.enums import BookingStatus, PaymentMethod, PaymentStatus, ResourceKind, UserRole


# ============================================================================
# BOOKING SCHEMAS
# ============================================================================

class CreateBookingRequest(BaseModel):
    """Create booking request DTO.

    Guides send startDate/endDate, vehicles and hotel rooms send
    checkIn/checkOut; all name the same half-open interval. Hotel stays may
    send guests as an {adults, children, infants} object, which counts as
    its total.
    """
    resource_id: str = Field(min_length=1, validation_alias=AliasChoices("resource_id", "resourceId"))
    resource_kind: ResourceKind = Field(validation_alias=AliasChoices("resource_kind", "resourceKind"))
    start: datetime = Field(validation_alias=AliasChoices("start", "startDate", "checkIn", "check_in"))
    end: datetime = Field(validation_alias=AliasChoices("end", "endDate", "checkOut", "check_out"))
    party_size: int = Field(
        ge=1,
        validation_alias=AliasChoices("party_size", "partySize", "participants", "guests"),
    )
    special_requests: Optional[str] = Field(None, max_length=500)
    meeting_point: Optional[str] = Field(None, max_length=200)
    payment_method: Optional[PaymentMethod] = None
    tour_type: Optional[str] = None

    @field_validator("party_size", mode="before")
    @classmethod
    def total_guests(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        counts = [v.get(key) or 0 for key in ("adults", "children", "infants")]
        if any(isinstance(c, bool) or not isinstance(c, int) or c < 0 for c in counts):
            raise ValueError("Guest counts must be non-negative whole numbers")
        if counts[0] < 1:
            raise ValueError("At least 1 adult is required")
        return sum(counts)


class CancelBookingRequest(BaseModel):
    """Cancel booking request DTO"""
    reason: Optional[str] = Field(None, max_length=500)


class UpdateBookingStatusRequest(BaseModel):
    """Update booking status request DTO"""
    status: BookingStatus


class BookingResponse(BaseModel):
    """Booking response DTO"""
    booking_id: UUID
    resource_id: str
    resource_kind: ResourceKind
    requester_id: UUID
    start: datetime
    end: datetime
    duration_days: int
    party_size: int
    total_amount: Decimal
    currency: str
    status: BookingStatus
    payment_status: PaymentStatus
    special_requests: Optional[str] = None
    meeting_point: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    tour_type: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancellation_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PaginationResponse(BaseModel):
    """Pagination metadata DTO"""
    current_page: int
    total_pages: int
    total_bookings: int
    has_next_page: bool
    has_prev_page: bool


class BookingListResponse(BaseModel):
    """Paged booking list DTO"""
    bookings: List[BookingResponse]
    pagination: PaginationResponse


class BookingStatsResponse(BaseModel):
    """Booking statistics DTO"""
    total: int
    pending: int
    confirmed: int
    in_progress: int
    completed: int
    cancelled: int
    total_amount: Decimal


class AvailabilityResponse(BaseModel):
    """Availability check DTO"""
    is_available: bool
    resource_available: bool
    conflicting_bookings: int
    units: int
    start: datetime
    end: datetime
    nights: int


class ExpirePendingResponse(BaseModel):
    """Pending booking sweep result DTO"""
    expired: int
    booking_ids: List[UUID]


# ============================================================================
# REVIEW SCHEMAS
# ============================================================================

class CreateReviewRequest(BaseModel):
    """Create review request DTO"""
    resource_id: str = Field(min_length=1)
    resource_kind: ResourceKind
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class ReviewResponse(BaseModel):
    """Review response DTO"""
    review_id: UUID
    resource_id: str
    resource_kind: ResourceKind
    user_id: UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime


class RatingDistributionResponse(BaseModel):
    """Rating distribution DTO"""
    resource_id: str
    resource_kind: ResourceKind
    distribution: Dict[int, int]
    average_rating: float
    total_reviews: int


# ============================================================================
# AUTH SCHEMAS
# ============================================================================

class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class TokenData(BaseModel):
    """Token payload DTO"""
    username: Optional[str] = None


class UserResponse(BaseModel):
    """User response DTO"""
    user_id: UUID
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: UserRole
    disabled: bool
