"""Reservation admissibility checks.

Pure functions: everything needed is passed in, nothing is read from or
written to a repository here.
"""
from datetime import datetime
from typing import Iterable, List

from domain.entities import Booking
from domain.enums import RejectionReason
from domain.value_objects import (
    BookingRequest, Interval, Rejection, ReservationCheck, ResourceSnapshot, ensure_utc
)


def _reject(reason: RejectionReason, detail: str) -> ReservationCheck:
    return ReservationCheck(rejection=Rejection.of(reason, detail))


def validate(request: BookingRequest, snapshot: ResourceSnapshot, now: datetime) -> ReservationCheck:
    """Decide whether ``request`` is admissible against ``snapshot`` at ``now``.

    Checks run in a fixed order and the first failure wins: availability,
    interval, capacity, blackout periods. Availability comes first, so an
    unavailable resource reports ResourceUnavailable even when the interval
    is also malformed; InvalidInterval is guaranteed for every available
    resource. On success the returned check carries the normalized interval.
    """
    now = ensure_utc(now)

    if not snapshot.is_available:
        return _reject(
            RejectionReason.RESOURCE_UNAVAILABLE,
            f"{snapshot.kind.value} {snapshot.resource_id} is not available for booking",
        )

    if request.start <= now:
        return _reject(RejectionReason.INVALID_INTERVAL, "Start date must be in the future")
    if request.end <= request.start:
        return _reject(RejectionReason.INVALID_INTERVAL, "End date must be after start date")

    if request.party_size > snapshot.capacity:
        return _reject(
            RejectionReason.CAPACITY_EXCEEDED,
            f"Capacity is {snapshot.capacity}, requested {request.party_size}",
        )

    interval = Interval(start=request.start, end=request.end)
    for blackout in snapshot.blackout_dates:
        if interval.overlaps(blackout.start, blackout.end):
            return _reject(
                RejectionReason.BLACKOUT_CONFLICT,
                f"Blocked from {blackout.start.isoformat()} to {blackout.end.isoformat()}",
            )

    return ReservationCheck(interval=interval)


def find_conflicts(interval: Interval, bookings: Iterable[Booking]) -> List[Booking]:
    """Active bookings whose [start, end) intersects ``interval``"""
    return [
        booking for booking in bookings
        if booking.is_active and interval.overlaps(booking.start, booking.end)
    ]


def check_conflicts(interval: Interval, snapshot: ResourceSnapshot, bookings: Iterable[Booking]) -> ReservationCheck:
    """Reject when every bookable unit of the resource is taken for the interval"""
    conflicts = find_conflicts(interval, bookings)
    if len(conflicts) >= snapshot.units:
        return _reject(
            RejectionReason.BOOKING_CONFLICT,
            f"{len(conflicts)} existing booking(s) overlap the requested dates",
        )
    return ReservationCheck(interval=interval)
