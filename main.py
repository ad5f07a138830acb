from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.exceptions import RequestValidationError
from uuid import UUID
from datetime import datetime, timedelta
from typing import List, Optional
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Bookings
    CreateBookingRequest, CancelBookingRequest, UpdateBookingStatusRequest,
    BookingResponse, BookingListResponse, PaginationResponse, BookingStatsResponse,
    AvailabilityResponse, ExpirePendingResponse,
    # Reviews
    CreateReviewRequest, ReviewResponse, RatingDistributionResponse,
    # Auth
    Token, UserResponse
)
from api.dependencies import get_current_active_user, fake_users_db, get_user
from api.errors import (
    raise_for_rejection, validation_exception_handler,
    repository_unavailable_handler, unhandled_exception_handler
)
from infrastructure.security import verify_password, create_access_token
from infrastructure.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES, DEFAULT_CURRENCY, DEFAULT_GUIDE_CAPACITY, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
)
from domain.auth import User
from domain.entities import Booking, Review
from domain.enums import BookingStatus, PaymentStatus, RejectionReason, ResourceKind
from domain.exceptions import RepositoryUnavailableError
from domain.resource_kinds import build_profiles
from domain.value_objects import BookingRequest, Rejection

from application.services import BookingService, RatingService
from infrastructure.repositories.in_memory_repositories import (
    InMemoryBookingRepository, InMemoryResourceCatalog, InMemoryReviewRepository
)

app = FastAPI(
    title="Travel Booking Engine API",
    description="Reservations, availability and ratings for guides, vehicles and hotel rooms",
    version="1.0.0"
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(RepositoryUnavailableError, repository_unavailable_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Initialize repositories
resource_profiles = build_profiles(DEFAULT_GUIDE_CAPACITY)
booking_repo = InMemoryBookingRepository()
resource_catalog = InMemoryResourceCatalog(resource_profiles, DEFAULT_CURRENCY)
review_repo = InMemoryReviewRepository()


# Dependency injection
def get_booking_service() -> BookingService:
    return BookingService(booking_repo, resource_catalog, resource_profiles)


def get_rating_service() -> RatingService:
    return RatingService(review_repo, resource_catalog)


# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}


@app.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus enum values"""
    return {
        "values": [item.value for item in BookingStatus],
        "description": "Booking status values: pending, confirmed, in_progress, completed, cancelled"
    }


@app.get("/api/enums/payment-status", tags=["Enum Reference"])
async def get_payment_statuses():
    """Get all PaymentStatus enum values"""
    return {
        "values": [item.value for item in PaymentStatus],
        "description": "Payment status values: pending, paid, refunded"
    }


@app.get("/api/enums/resource-kind", tags=["Enum Reference"])
async def get_resource_kinds():
    """Get all ResourceKind enum values"""
    return {
        "values": [item.value for item in ResourceKind],
        "description": "Bookable resource kinds: guide, vehicle, hotelRoom"
    }


@app.get("/api/enums/rejection-reason", tags=["Enum Reference"])
async def get_rejection_reasons():
    """Get every rejection reason with its stable message"""
    return {
        "values": {item.value: Rejection.of(item).message for item in RejectionReason},
        "description": "Reasons a booking operation can be refused"
    }


# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}


@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user


# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.post("/api/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create a booking for a guide, vehicle or hotel room"""
    outcome = await service.create_booking(BookingRequest(
        requester_id=current_user.user_id,
        resource_id=request.resource_id,
        resource_kind=request.resource_kind,
        start=request.start,
        end=request.end,
        party_size=request.party_size,
        special_requests=request.special_requests,
        meeting_point=request.meeting_point,
        payment_method=request.payment_method,
        tour_type=request.tour_type
    ))
    if not outcome.ok:
        raise_for_rejection(outcome.rejection)
    return _booking_to_response(outcome.booking)


@app.get("/api/bookings/my", response_model=BookingListResponse, tags=["Bookings"])
async def get_my_bookings(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    status: Optional[BookingStatus] = None,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get the current user's bookings, newest first"""
    result = await service.list_bookings_for_requester(current_user.user_id, page, limit, status)
    return BookingListResponse(
        bookings=[_booking_to_response(b) for b in result.bookings],
        pagination=PaginationResponse(
            current_page=result.page,
            total_pages=result.total_pages,
            total_bookings=result.total,
            has_next_page=result.has_next_page,
            has_prev_page=result.has_prev_page
        )
    )


@app.get("/api/bookings/my/stats", response_model=BookingStatsResponse, tags=["Bookings"])
async def get_my_booking_stats(
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Count the current user's bookings per status"""
    stats = await service.get_booking_stats(current_user.user_id)
    return BookingStatsResponse(
        total=stats.total,
        total_amount=stats.total_amount,
        **{status.value: count for status, count in stats.by_status.items()}
    )


@app.post("/api/bookings/expire-pending", response_model=ExpirePendingResponse, tags=["Bookings"])
async def expire_pending_bookings(
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel pending bookings older than the configured TTL (admin only)"""
    if not current_user.is_admin:
        raise_for_rejection(Rejection.of(RejectionReason.FORBIDDEN, "Admin only"))
    expired = await service.expire_stale_pending()
    return ExpirePendingResponse(expired=len(expired), booking_ids=[b.booking_id for b in expired])


@app.get("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by ID"""
    outcome = await service.get_booking(booking_id, current_user)
    if not outcome.ok:
        raise_for_rejection(outcome.rejection)
    return _booking_to_response(outcome.booking)


@app.put("/api/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    booking_id: UUID,
    request: CancelBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel a booking"""
    outcome = await service.cancel_booking(booking_id, current_user, request.reason)
    if not outcome.ok:
        raise_for_rejection(outcome.rejection)
    return _booking_to_response(outcome.booking)


@app.put("/api/bookings/{booking_id}/status", response_model=BookingResponse, tags=["Bookings"])
async def update_booking_status(
    booking_id: UUID,
    request: UpdateBookingStatusRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Update booking status (admin only)"""
    outcome = await service.update_booking_status(booking_id, request.status, current_user)
    if not outcome.ok:
        raise_for_rejection(outcome.rejection)
    return _booking_to_response(outcome.booking)


# ============================================================================
# AVAILABILITY ENDPOINTS
# ============================================================================

@app.get("/api/availability", response_model=AvailabilityResponse, tags=["Availability"])
async def check_availability(
    resource_kind: ResourceKind,
    resource_id: str,
    start: datetime,
    end: datetime,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check whether a resource is free for a date range"""
    try:
        report = await service.check_availability(resource_kind, resource_id, start, end)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if report is None:
        raise_for_rejection(Rejection.of(RejectionReason.NOT_FOUND, f"{resource_kind.value} {resource_id} not found"))
    return AvailabilityResponse(**report.model_dump())


# ============================================================================
# REVIEW & RATING ENDPOINTS
# ============================================================================

@app.post("/api/reviews", response_model=ReviewResponse, status_code=201, tags=["Reviews"])
async def create_review(
    request: CreateReviewRequest,
    service: RatingService = Depends(get_rating_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create a review for a guide, vehicle or hotel room"""
    outcome = await service.add_review(
        kind=request.resource_kind,
        resource_id=request.resource_id,
        user_id=current_user.user_id,
        rating=request.rating,
        comment=request.comment
    )
    if not outcome.ok:
        raise_for_rejection(outcome.rejection)
    return _review_to_response(outcome.review)


@app.get("/api/resources/{resource_kind}/{resource_id}/reviews", response_model=List[ReviewResponse], tags=["Reviews"])
async def get_resource_reviews(
    resource_kind: ResourceKind,
    resource_id: str,
    service: RatingService = Depends(get_rating_service)
):
    """Get reviews for a resource, newest first"""
    reviews = await service.list_reviews(resource_kind, resource_id)
    return [_review_to_response(r) for r in reviews]


@app.get("/api/resources/{resource_kind}/{resource_id}/ratings", response_model=RatingDistributionResponse, tags=["Reviews"])
async def get_rating_distribution(
    resource_kind: ResourceKind,
    resource_id: str,
    service: RatingService = Depends(get_rating_service)
):
    """Get rating distribution, recomputed from the current reviews"""
    summary = await service.get_rating_distribution(resource_kind, resource_id)
    if summary is None:
        raise_for_rejection(Rejection.of(RejectionReason.NOT_FOUND, "Resource not found"))
    return RatingDistributionResponse(
        resource_id=resource_id,
        resource_kind=resource_kind,
        distribution=summary.distribution,
        average_rating=summary.average_rating,
        total_reviews=summary.total_reviews
    )


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _booking_to_response(booking: Booking) -> BookingResponse:
    """Convert Booking entity to BookingResponse"""
    return BookingResponse(
        booking_id=booking.booking_id,
        resource_id=booking.resource_id,
        resource_kind=booking.resource_kind,
        requester_id=booking.requester_id,
        start=booking.start,
        end=booking.end,
        duration_days=booking.duration_days,
        party_size=booking.party_size,
        total_amount=booking.total_amount,
        currency=booking.currency,
        status=booking.status,
        payment_status=booking.payment_status,
        special_requests=booking.special_requests,
        meeting_point=booking.meeting_point,
        payment_method=booking.payment_method,
        tour_type=booking.tour_type,
        cancellation_reason=booking.cancellation_reason,
        cancellation_date=booking.cancellation_date,
        created_at=booking.created_at,
        updated_at=booking.updated_at
    )


def _review_to_response(review: Review) -> ReviewResponse:
    """Convert Review entity to ReviewResponse"""
    return ReviewResponse(
        review_id=review.review_id,
        resource_id=review.resource_id,
        resource_kind=review.resource_kind,
        user_id=review.user_id,
        rating=review.rating,
        comment=review.comment,
        created_at=review.created_at
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
