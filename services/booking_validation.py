"""
Request normalization and field validation for booking eligibility checks.

Each check runs in a fixed order and the first failure wins; callers
pattern-match on the exact error strings, so they must not change.
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple

from core.booking_policy import EnginePolicy
from core.utils_datetime import parse_iso_date
from domain.models import BookingRequest, Verdict
from services.conflict_service import parse_booking_range


logger = logging.getLogger(__name__)


INVALID_JSON = "Invalid JSON input format"
INVALID_INPUT_TYPE = "Input must be a JSON string or an object"
INVALID_SELECTED_DATE = "Invalid selected date format. Expected YYYY-MM-DD"
INVALID_ALLOW_ADDITIONAL_NIGHTS = "allowAdditionalNights must be a boolean"
ADDITIONAL_NIGHTS_NOT_ALLOWED = "Additional nights are not allowed"
INVALID_IS_CHANGE_REQUEST = "isChangeRequest must be a boolean"
INVALID_CURRENT_BOOKING = (
    "currentBooking must be provided for change requests and must have valid "
    "checkIn and checkout dates in YYYY-MM-DD format"
)
INVALID_ALL_BOOKINGS = "allBookings must be an array of booking objects"
INVALID_USER_BOOKING = "userBooking must be an array of booking objects"
INVALID_DAYS_AVAILABLE = "Days available to host must be an array of day names"
INVALID_FUTURE_DAYS = "Future days must be a non-negative integer"
INVALID_SAME_DAY_BOOKING = "Same day booking must be a boolean"
INVALID_DAYS_IN_ADVANCE = "Days in advance must be a non-negative integer"
INVALID_SPACE = "space must be a positive integer or omitted"


# ============================================================================
# Request Normalization
# ============================================================================

def normalize_request(raw: Any) -> Tuple[Optional[Dict[str, Any]], Optional[Verdict]]:
    """
    Turn the incoming request into a mapping.

    Args:
        raw: A mapping, or its JSON text (str or bytes)

    Returns:
        Tuple of (payload, None) on success or (None, failure verdict)
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            logger.info("Rejected request: body is not valid JSON")
            return None, Verdict.malformed(INVALID_JSON)

    if not isinstance(raw, dict):
        return None, Verdict.malformed(INVALID_INPUT_TYPE)

    return raw, None


# ============================================================================
# Field Type Helpers
# ============================================================================

def is_strict_bool(value: Any) -> bool:
    """True only for real booleans (1 and 0 are not booleans)."""
    return isinstance(value, bool)


def as_integer(value: Any) -> Optional[int]:
    """
    Return the integer value of an integral number, else None.

    Booleans are rejected; integral floats such as ``3.0`` are accepted
    because JSON producers routinely emit them.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def validate_bounded_integer(value: Any, minimum: int = 0) -> Optional[int]:
    """Integer value if it is an integer >= minimum, else None."""
    number = as_integer(value)
    if number is None or number < minimum:
        return None
    return number


# ============================================================================
# Field Validation
# ============================================================================

def validate_request_fields(
    payload: Dict[str, Any],
    policy: EnginePolicy
) -> Tuple[Optional[BookingRequest], Optional[Verdict]]:
    """
    Validate every request field in order, stopping at the first failure.

    Args:
        payload: Decoded request mapping
        policy: Engine policy selecting the optional checks

    Returns:
        Tuple of (BookingRequest, None) or (None, failure verdict)
    """
    selected_date = parse_iso_date(payload.get("selectedDate"))
    if selected_date is None:
        return None, Verdict.malformed(INVALID_SELECTED_DATE)

    allow_additional_nights = False
    if policy.require_additional_nights_opt_in:
        allow_additional_nights = payload.get("allowAdditionalNights", False)
        if not is_strict_bool(allow_additional_nights):
            return None, Verdict.malformed(INVALID_ALLOW_ADDITIONAL_NIGHTS)

    additional_nights = validate_bounded_integer(
        payload.get("additionalNights"), minimum=policy.min_additional_nights
    )
    if additional_nights is None:
        return None, Verdict.malformed(policy.additional_nights_error)

    if policy.require_additional_nights_opt_in and not allow_additional_nights and additional_nights > 0:
        logger.info("Rejected request: additional nights requested without opt-in")
        return None, Verdict.rejected(ADDITIONAL_NIGHTS_NOT_ALLOWED)

    is_change_request = payload.get("isChangeRequest")
    if not is_strict_bool(is_change_request):
        return None, Verdict.malformed(INVALID_IS_CHANGE_REQUEST)

    current_booking = None
    if is_change_request:
        current_booking = parse_booking_range(payload.get("currentBooking"))
        if current_booking is None:
            return None, Verdict.malformed(INVALID_CURRENT_BOOKING)

    all_bookings = payload.get("allBookings")
    if not isinstance(all_bookings, list):
        return None, Verdict.malformed(INVALID_ALL_BOOKINGS)

    user_booking = payload.get("userBooking")
    if not isinstance(user_booking, list):
        return None, Verdict.malformed(INVALID_USER_BOOKING)

    days_available_to_host = payload.get("daysAvailableToHost")
    if not isinstance(days_available_to_host, list):
        return None, Verdict.malformed(INVALID_DAYS_AVAILABLE)

    future_days = validate_bounded_integer(payload.get("futureDays"))
    if future_days is None:
        return None, Verdict.malformed(INVALID_FUTURE_DAYS)

    same_day_booking = payload.get("sameDayBooking")
    if not is_strict_bool(same_day_booking):
        return None, Verdict.malformed(INVALID_SAME_DAY_BOOKING)

    days_in_advance = validate_bounded_integer(payload.get("daysInAdvance"))
    if days_in_advance is None:
        return None, Verdict.malformed(INVALID_DAYS_IN_ADVANCE)

    space = None
    if payload.get("space") is not None:
        space = validate_bounded_integer(payload["space"], minimum=1)
        if space is None:
            return None, Verdict.malformed(INVALID_SPACE)

    # Blocklists are optional; anything other than a list contributes nothing
    blocked_yearly = payload.get("blockedYearly")
    blocked_no_yearly = payload.get("blockedNoYearly")

    request = BookingRequest(
        selected_date=selected_date,
        additional_nights=additional_nights,
        is_change_request=is_change_request,
        current_booking=current_booking,
        all_bookings=all_bookings,
        user_booking=user_booking,
        days_available_to_host=days_available_to_host,
        future_days=future_days,
        same_day_booking=same_day_booking,
        days_in_advance=days_in_advance,
        space=space,
        blocked_yearly=blocked_yearly if isinstance(blocked_yearly, list) else [],
        blocked_no_yearly=blocked_no_yearly if isinstance(blocked_no_yearly, list) else [],
        allow_additional_nights=allow_additional_nights,
    )
    return request, None
