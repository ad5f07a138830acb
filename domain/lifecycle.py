"""Booking status state machine"""
from typing import Dict, Optional

from domain.entities import Booking
from domain.enums import BookingStatus, RejectionReason
from domain.resource_kinds import ResourceKindProfile
from domain.value_objects import Rejection

# Forward ordering; cancelled sits outside it and is only reachable from the
# first two states.
STATUS_ORDER: Dict[BookingStatus, int] = {
    BookingStatus.PENDING: 0,
    BookingStatus.CONFIRMED: 1,
    BookingStatus.IN_PROGRESS: 2,
    BookingStatus.COMPLETED: 3,
}


def check_transition(
    booking: Booking,
    new_status: BookingStatus,
    profile: ResourceKindProfile,
) -> Optional[Rejection]:
    """Return why ``booking`` cannot move to ``new_status``, or None when it can"""
    if booking.is_terminal:
        return Rejection.of(
            RejectionReason.ALREADY_TERMINAL,
            f"Booking is already {booking.status.value}",
        )

    if new_status != BookingStatus.CANCELLED and STATUS_ORDER[new_status] <= STATUS_ORDER[booking.status]:
        return Rejection.of(
            RejectionReason.INVALID_TRANSITION,
            f"Status cannot move backwards from {booking.status.value} to {new_status.value}",
        )

    if new_status not in profile.allowed_transitions()[booking.status]:
        return Rejection.of(
            RejectionReason.INVALID_TRANSITION,
            f"{profile.kind.value} bookings cannot move from {booking.status.value} to {new_status.value}",
        )

    return None
