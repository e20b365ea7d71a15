"""
Booking eligibility decision pipeline.

Evaluates a proposed stay (a check-in date plus additional nights) against the
host's calendar rules and existing reservations, and returns a single verdict.
Checks run in a fixed order and the first one that fires is reported:

    1. future-day horizon
    2. calendar-year cap (trusted policy only)
    3. blocked dates
    4. same-day policy
    5. advance notice
    6. per-night scan: hosting weekday, user's own bookings, all bookings
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from core.booking_policy import EnginePolicy, get_default_policy
from core.logging import LogContext
from core.utils_datetime import (
    add_calendar_years,
    add_days_clamped,
    days_between,
    format_iso_date,
    get_current_date,
    weekday_name,
)
from domain.models import BookingRequest, Verdict
from services.blocklist_service import CompiledBlocklist, compile_blocklist
from services.booking_validation import normalize_request, validate_request_fields
from services.conflict_service import build_conflict_sets


logger = logging.getLogger(__name__)


SAME_DAY_NOT_ALLOWED = "Same-day bookings are not allowed"
UNEXPECTED_ERROR = "An unexpected error occurred"


def run_decision_pipeline(
    request: BookingRequest,
    blocklist: CompiledBlocklist,
    today: date,
    policy: EnginePolicy
) -> Verdict:
    """
    Run the ordered availability checks over every night of the stay.

    Args:
        request: Validated booking request
        blocklist: Compiled blocklist for the request
        today: Reference date
        policy: Engine policy

    Returns:
        The first failing verdict, or an accepted verdict
    """
    warning = blocklist.warning

    # Nights run in order, so the last one decides the horizon checks
    last_possible_date = add_days_clamped(today, request.future_days)
    past_calendar_end = days_between(request.selected_date, date.max) < request.additional_nights
    last_night = add_days_clamped(request.selected_date, request.additional_nights)
    if past_calendar_end or last_night > last_possible_date:
        return Verdict.rejected(
            f"Cannot book more than {request.future_days} days in the future", warning
        )

    if policy.enforce_calendar_year_cap:
        last_calendar_date = add_calendar_years(today, policy.max_booking_years)
        if last_night > last_calendar_date:
            return Verdict.rejected(policy.calendar_year_cap_message, warning)

    candidates = request.candidate_dates

    blocked = blocklist.first_blocked(candidates)
    if blocked is not None:
        return Verdict.rejected(f"Date blocked: {format_iso_date(blocked)}", warning)

    days_ahead = days_between(today, request.selected_date)

    # Same-day takes precedence over the advance-notice wording
    if not request.same_day_booking and days_ahead == 0:
        return Verdict.rejected(SAME_DAY_NOT_ALLOWED, warning)

    if days_ahead < request.days_in_advance:
        return Verdict.rejected(
            f"Bookings must be made at least {request.days_in_advance} days in advance", warning
        )

    conflicts, error_message = build_conflict_sets(request)
    if error_message:
        return Verdict.malformed(error_message)

    for night in candidates:
        day_name = weekday_name(night)
        if day_name not in request.days_available_to_host:
            return Verdict.rejected(f"Hosting not available on {day_name}", warning)

        night_str = format_iso_date(night)
        if night in conflicts.user_bookings:
            return Verdict.rejected(f"You already have a booking on {night_str}", warning)

        if night in conflicts.all_bookings:
            return Verdict.rejected(f"Booking conflict: {night_str} is already booked", warning)

    return Verdict.accepted(warning)


def evaluate(
    request: Any,
    today: Optional[date] = None,
    policy: Optional[EnginePolicy] = None
) -> Verdict:
    """
    Decide whether a proposed stay may be booked.

    Args:
        request: Request mapping, or its JSON text
        today: Reference date (defaults to today in the configured timezone)
        policy: Engine policy (defaults to the configured variant)

    Returns:
        Verdict with status, message and error_message
    """
    policy = policy or get_default_policy()
    today = today or get_current_date()

    try:
        payload, failure = normalize_request(request)
        if failure is not None:
            return failure

        booking, failure = validate_request_fields(payload, policy)
        if failure is not None:
            return failure

        with LogContext(
            logger,
            variant=policy.variant.value,
            selected_date=format_iso_date(booking.selected_date),
            additional_nights=booking.additional_nights,
        ) as context:
            blocklist = compile_blocklist(booking, policy)
            verdict = run_decision_pipeline(booking, blocklist, today, policy)

            if verdict.status:
                context.log("debug", "Stay accepted")
            else:
                context.log("info", "Stay rejected", reason=verdict.message or verdict.error_message)

    except Exception as e:
        logger.exception(f"Eligibility evaluation failed: {e}")
        return Verdict(
            status=False,
            message=UNEXPECTED_ERROR,
            error_message=f"Unexpected error: {e}",
        )

    return verdict


# ============================================================================
# Service-Layer Wrapper
# ============================================================================

class AvailabilityService:
    """
    Service-layer interface for eligibility checks.

    Holds a fixed policy and clock; carries no per-request state, so one
    instance can be shared across threads.
    """

    def __init__(
        self,
        policy: Optional[EnginePolicy] = None,
        clock: Optional[Callable[[], date]] = None
    ):
        """Initialize the service."""
        self.policy = policy or get_default_policy()
        self.clock = clock or get_current_date

    def evaluate(self, request: Any) -> Verdict:
        """Evaluate one booking request."""
        return evaluate(request, today=self.clock(), policy=self.policy)

    def evaluate_wire(self, request: Any) -> Dict[str, Any]:
        """Evaluate one booking request and return the wire-format verdict."""
        return self.evaluate(request).to_wire()


# Singleton instance
_availability_service_instance: Optional[AvailabilityService] = None


def get_availability_service() -> AvailabilityService:
    """Get or create the availability service singleton."""
    global _availability_service_instance
    if _availability_service_instance is None:
        _availability_service_instance = AvailabilityService()
    return _availability_service_instance
