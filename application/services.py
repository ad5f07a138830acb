"""Application Services - Business use cases"""
import math
from uuid import UUID
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from application.results import AvailabilityReport, BookingOutcome, BookingPage, BookingStats, ReviewOutcome
from domain.auth import User
from domain.entities import Booking, Review, utcnow
from domain.enums import BookingStatus, RejectionReason, ResourceKind
from domain.exceptions import OverlappingBookingError
from domain.lifecycle import check_transition
from domain.pricing import compute_price
from domain.rating import aggregate
from domain.repositories import BookingRepository, ResourceCatalog, ReviewRepository
from domain.reservation_validator import check_conflicts, find_conflicts, validate
from domain.resource_kinds import ResourceKindProfile
from domain.value_objects import BookingRequest, Interval, RatingDistribution, ensure_utc
from infrastructure.config import DEFAULT_DAILY_RATE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PENDING_BOOKING_TTL_HOURS
from infrastructure.logger import get_logger

logger = get_logger()

EXPIRED_REASON = "expired"


def _resolve_now(now: Optional[datetime]) -> datetime:
    return ensure_utc(now) if now else utcnow()


class BookingService:
    """Booking lifecycle for guides, vehicles and hotel rooms.

    Holds no booking state between calls: every operation reads what it needs
    from the repositories and writes its result straight back.
    """

    def __init__(self,
                 repository: BookingRepository,
                 catalog: ResourceCatalog,
                 profiles: Dict[ResourceKind, ResourceKindProfile],
                 default_daily_rate: Decimal = DEFAULT_DAILY_RATE):
        self.repository = repository
        self.catalog = catalog
        self.profiles = profiles
        self.default_daily_rate = default_daily_rate

    async def create_booking(self, request: BookingRequest, now: Optional[datetime] = None) -> BookingOutcome:
        """Validate, price and persist a new pending booking"""
        now = _resolve_now(now)
        snapshot = await self.catalog.get_snapshot(request.resource_kind, request.resource_id)
        if snapshot is None:
            return self._refuse(
                RejectionReason.NOT_FOUND,
                f"{request.resource_kind.value} {request.resource_id} not found",
            )

        check = validate(request, snapshot, now)
        if not check.ok:
            return self._refuse_check(check.rejection.reason, check.rejection.detail, request)

        existing = await self.repository.find_overlapping(
            request.resource_kind, request.resource_id, request.start, request.end
        )
        check = check_conflicts(check.interval, snapshot, existing)
        if not check.ok:
            return self._refuse_check(check.rejection.reason, check.rejection.detail, request)

        price = compute_price(snapshot, check.interval, self.default_daily_rate)
        booking = Booking(
            resource_id=request.resource_id,
            resource_kind=request.resource_kind,
            requester_id=request.requester_id,
            start=check.interval.start,
            end=check.interval.end,
            party_size=request.party_size,
            total_amount=price.amount,
            currency=price.currency,
            special_requests=request.special_requests,
            meeting_point=request.meeting_point,
            payment_method=request.payment_method,
            tour_type=request.tour_type,
            created_at=now,
            updated_at=now,
        )

        try:
            booking = await self.repository.add_if_no_overlap(booking, snapshot.units)
        except OverlappingBookingError as e:
            return self._refuse_check(RejectionReason.BOOKING_CONFLICT, str(e), request)

        logger.info("Booking created", extra={
            "booking_id": str(booking.booking_id),
            "resource_kind": booking.resource_kind.value,
            "resource_id": booking.resource_id,
            "total_amount": str(booking.total_amount),
        })
        return BookingOutcome.accepted(booking)

    async def get_booking(self, booking_id: UUID, requester: User) -> BookingOutcome:
        """Get booking by ID; only its owner or an administrator may read it"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return self._refuse(RejectionReason.NOT_FOUND, "Booking not found")
        if not self._may_act_on(booking, requester):
            return self._refuse(RejectionReason.FORBIDDEN, "You can only view your own bookings")
        return BookingOutcome.accepted(booking)

    async def cancel_booking(
        self,
        booking_id: UUID,
        requester: User,
        reason: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> BookingOutcome:
        """Cancel a pending or confirmed booking on behalf of its owner or an administrator"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return self._refuse(RejectionReason.NOT_FOUND, "Booking not found")
        if not self._may_act_on(booking, requester):
            return self._refuse(RejectionReason.FORBIDDEN, "You can only cancel your own bookings")

        rejection = check_transition(booking, BookingStatus.CANCELLED, self.profiles[booking.resource_kind])
        if rejection:
            return self._refuse(rejection.reason, rejection.detail)

        now = _resolve_now(now)
        booking.status = BookingStatus.CANCELLED
        booking.cancellation_reason = reason
        booking.cancellation_date = now
        booking.updated_at = now
        booking = await self.repository.update(booking)

        logger.info("Booking cancelled", extra={
            "booking_id": str(booking.booking_id),
            "requester_id": str(requester.user_id),
        })
        return BookingOutcome.accepted(booking)

    async def update_booking_status(
        self,
        booking_id: UUID,
        new_status: BookingStatus,
        requester: User,
        now: Optional[datetime] = None
    ) -> BookingOutcome:
        """Move a booking forward along its status machine (administrators only)"""
        booking = await self.repository.find_by_id(booking_id)
        if not booking:
            return self._refuse(RejectionReason.NOT_FOUND, "Booking not found")
        if not requester.is_admin:
            return self._refuse(RejectionReason.FORBIDDEN, "Admin only")

        rejection = check_transition(booking, new_status, self.profiles[booking.resource_kind])
        if rejection:
            return self._refuse(rejection.reason, rejection.detail)

        now = _resolve_now(now)
        previous = booking.status
        booking.status = new_status
        if new_status == BookingStatus.CANCELLED:
            booking.cancellation_date = now
        booking.updated_at = now
        booking = await self.repository.update(booking)

        logger.info("Booking status updated", extra={
            "booking_id": str(booking.booking_id),
            "from_status": previous.value,
            "to_status": new_status.value,
        })
        return BookingOutcome.accepted(booking)

    async def list_bookings_for_requester(
        self,
        requester_id: UUID,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        status: Optional[BookingStatus] = None
    ) -> BookingPage:
        """Page through a requester's bookings, newest first"""
        page = max(page, 1)
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        skip = (page - 1) * limit

        bookings, total = await self.repository.find_by_requester(requester_id, status, skip, limit)
        return BookingPage(
            bookings=bookings,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
            has_next_page=skip + len(bookings) < total,
            has_prev_page=page > 1,
        )

    async def get_booking_stats(self, requester_id: UUID) -> BookingStats:
        """Count a requester's bookings per status and sum their amounts"""
        bookings, total = await self.repository.find_by_requester(requester_id)
        by_status = {status: 0 for status in BookingStatus}
        for booking in bookings:
            by_status[booking.status] += 1
        return BookingStats(
            total=total,
            by_status=by_status,
            total_amount=sum((b.total_amount for b in bookings), Decimal("0")),
        )

    async def check_availability(
        self,
        kind: ResourceKind,
        resource_id: str,
        start: datetime,
        end: datetime
    ) -> Optional[AvailabilityReport]:
        """Report whether a resource is free for [start, end) without booking it"""
        snapshot = await self.catalog.get_snapshot(kind, resource_id)
        if snapshot is None:
            return None

        interval = Interval(start=start, end=end)
        existing = await self.repository.find_overlapping(kind, resource_id, interval.start, interval.end)
        conflicts = find_conflicts(interval, existing)
        return AvailabilityReport(
            is_available=snapshot.is_available and len(conflicts) < snapshot.units,
            resource_available=snapshot.is_available,
            conflicting_bookings=len(conflicts),
            units=snapshot.units,
            start=interval.start,
            end=interval.end,
            nights=interval.duration_days(),
        )

    async def expire_stale_pending(
        self,
        now: Optional[datetime] = None,
        ttl: Optional[timedelta] = None
    ) -> List[Booking]:
        """Cancel pending bookings that were never confirmed within ``ttl``.

        Nothing calls this on a timer; it is run by an external scheduler or
        the admin endpoint.
        """
        now = _resolve_now(now)
        ttl = ttl if ttl is not None else timedelta(hours=PENDING_BOOKING_TTL_HOURS)

        expired = []
        for booking in await self.repository.find_pending_created_before(now - ttl):
            booking.status = BookingStatus.CANCELLED
            booking.cancellation_reason = EXPIRED_REASON
            booking.cancellation_date = now
            booking.updated_at = now
            expired.append(await self.repository.update(booking))

        if expired:
            logger.info("Expired pending bookings", extra={"count": len(expired)})
        return expired

    @staticmethod
    def _may_act_on(booking: Booking, requester: User) -> bool:
        return booking.requester_id == requester.user_id or requester.is_admin

    @staticmethod
    def _refuse(reason: RejectionReason, detail: Optional[str] = None) -> BookingOutcome:
        logger.info("Booking operation rejected", extra={"reason": reason.value, "detail": detail})
        return BookingOutcome.rejected(reason, detail)

    def _refuse_check(self, reason: RejectionReason, detail: Optional[str], request: BookingRequest) -> BookingOutcome:
        logger.info("Booking request rejected", extra={
            "reason": reason.value,
            "resource_kind": request.resource_kind.value,
            "resource_id": request.resource_id,
        })
        return BookingOutcome.rejected(reason, detail)


class RatingService:
    """Reviews and rating summaries for guides, vehicles and hotel rooms"""

    def __init__(self, repository: ReviewRepository, catalog: ResourceCatalog):
        self.repository = repository
        self.catalog = catalog

    async def add_review(
        self,
        kind: ResourceKind,
        resource_id: str,
        user_id: UUID,
        rating: int,
        comment: Optional[str] = None
    ) -> ReviewOutcome:
        """Store a review; each user may review a resource once"""
        if await self.catalog.get_snapshot(kind, resource_id) is None:
            return self._refuse(RejectionReason.NOT_FOUND, f"{kind.value} {resource_id} not found")
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            return self._refuse(RejectionReason.VALIDATION_ERROR, "Rating must be between 1 and 5")
        if await self.repository.find_by_user_and_resource(user_id, kind, resource_id):
            return self._refuse(RejectionReason.ALREADY_REVIEWED, "You have already reviewed this resource")

        review = Review(
            resource_id=resource_id,
            resource_kind=kind,
            user_id=user_id,
            rating=rating,
            comment=comment,
        )
        review = await self.repository.save(review)
        logger.info("Review added", extra={
            "review_id": str(review.review_id),
            "resource_kind": kind.value,
            "resource_id": resource_id,
        })
        return ReviewOutcome(review=review)

    @staticmethod
    def _refuse(reason: RejectionReason, detail: str) -> ReviewOutcome:
        logger.info("Review rejected", extra={"reason": reason.value, "detail": detail})
        return ReviewOutcome.rejected(reason, detail)

    async def list_reviews(self, kind: ResourceKind, resource_id: str) -> List[Review]:
        """Get reviews for a resource, newest first"""
        return await self.repository.find_by_resource(kind, resource_id)

    async def get_rating_distribution(self, kind: ResourceKind, resource_id: str) -> Optional[RatingDistribution]:
        """Aggregate the current review set; None when the resource does not exist"""
        if await self.catalog.get_snapshot(kind, resource_id) is None:
            return None
        reviews = await self.repository.find_by_resource(kind, resource_id)
        return aggregate(reviews)
