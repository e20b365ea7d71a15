"""Conflict sets built from existing reservations."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional, Set, Tuple

from core.utils_datetime import expand_range, parse_iso_date
from domain.models import BookingRange, BookingRequest


logger = logging.getLogger(__name__)


INVALID_BOOKING_RANGE = (
    "Invalid booking range format. Each booking must have checkIn and "
    "checkout dates in YYYY-MM-DD format"
)
INVALID_USER_BOOKING_RANGE = (
    "Invalid user booking range format. Each booking must have checkIn and "
    "checkout dates in YYYY-MM-DD format"
)


@dataclass
class ConflictSets:
    """Occupied nights on the calendar and of the requesting user."""
    all_bookings: Set[date] = field(default_factory=set)
    user_bookings: Set[date] = field(default_factory=set)

    def exclude(self, booking: BookingRange) -> None:
        """Drop the nights of ``booking`` from both sets."""
        for night in expand_range(booking.check_in, booking.checkout):
            self.all_bookings.discard(night)
            self.user_bookings.discard(night)


def parse_booking_range(value: Any) -> Optional[BookingRange]:
    """Parse a ``{checkIn, checkout}`` pair, or None if either date is invalid."""
    if not isinstance(value, dict):
        return None
    check_in = parse_iso_date(value.get("checkIn"))
    checkout = parse_iso_date(value.get("checkout"))
    if check_in is None or checkout is None:
        return None
    return BookingRange(check_in=check_in, checkout=checkout)


def flatten_bookings(bookings: List[Any]) -> Optional[Set[date]]:
    """
    Expand every [checkIn, checkout) pair into the set of occupied nights.

    Returns:
        Set of nights, or None as soon as one pair is malformed
    """
    nights: Set[date] = set()
    for raw in bookings:
        booking = parse_booking_range(raw)
        if booking is None:
            return None
        nights.update(expand_range(booking.check_in, booking.checkout))
    return nights


def build_conflict_sets(request: BookingRequest) -> Tuple[Optional[ConflictSets], Optional[str]]:
    """
    Build the conflict sets for a request.

    For change requests the nights of the booking being modified are removed
    from both sets, so users can move a booking onto its own previous dates.

    Returns:
        Tuple of (ConflictSets, None) or (None, error_message)
    """
    all_bookings = flatten_bookings(request.all_bookings)
    if all_bookings is None:
        return None, INVALID_BOOKING_RANGE

    user_bookings = flatten_bookings(request.user_booking)
    if user_bookings is None:
        return None, INVALID_USER_BOOKING_RANGE

    conflicts = ConflictSets(all_bookings=all_bookings, user_bookings=user_bookings)

    if request.is_change_request and request.current_booking is not None:
        conflicts.exclude(request.current_booking)
        logger.debug(
            f"Excluded current booking {request.current_booking.check_in} - "
            f"{request.current_booking.checkout} from conflict checks"
        )

    return conflicts, None
