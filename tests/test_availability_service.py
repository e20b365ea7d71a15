"""
Tests for the eligibility decision pipeline.

All scenarios are evaluated on Monday 2025-12-01 with an explicit policy so
they do not depend on the wall clock or the environment.
"""

import copy
import json
import logging
import pytest
from datetime import date

from core.booking_policy import TRUSTED_POLICY
from services import availability_service
from services.availability_service import (
    SAME_DAY_NOT_ALLOWED,
    UNEXPECTED_ERROR,
    AvailabilityService,
    evaluate,
    get_availability_service,
)
from services.blocklist_service import IGNORED_ENTRIES_MESSAGE
from services.booking_validation import (
    ADDITIONAL_NIGHTS_NOT_ALLOWED,
    INVALID_INPUT_TYPE,
    INVALID_JSON,
)
from services.conflict_service import INVALID_BOOKING_RANGE, INVALID_USER_BOOKING_RANGE


ALL_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def booking(check_in, checkout):
    return {"checkIn": check_in, "checkout": checkout}


# ============================================================================
# Happy Path
# ============================================================================

class TestAcceptedStays:
    """Tests for stays that pass every check."""

    def test_sample_request_is_accepted(self, make_request, today, trusted_policy):
        verdict = evaluate(make_request(), today=today, policy=trusted_policy)
        assert verdict.status is True
        assert verdict.message == ""
        assert verdict.error_message == ""

    def test_json_text_request(self, make_request, today, trusted_policy):
        verdict = evaluate(json.dumps(make_request()), today=today, policy=trusted_policy)
        assert verdict.status is True

    def test_wire_format(self, make_request, today, trusted_policy):
        wire = evaluate(make_request(), today=today, policy=trusted_policy).to_wire()
        assert wire == {"status": True, "message": "", "errorMessage": ""}

    def test_same_day_allowed(self, make_request, today, trusted_policy):
        data = make_request(
            selectedDate="2025-12-01",
            additionalNights=1,
            sameDayBooking=True,
            daysInAdvance=0,
            allBookings=[],
        )
        assert evaluate(data, today=today, policy=trusted_policy).status is True

    def test_request_is_not_mutated(self, make_request, today, trusted_policy):
        data = make_request(blockedYearly=["12/25"], space=1)
        snapshot = copy.deepcopy(data)
        evaluate(data, today=today, policy=trusted_policy)
        assert data == snapshot

    def test_evaluation_is_idempotent(self, make_request, today, trusted_policy):
        data = make_request(blockedYearly=["bogus"], daysInAdvance=20)
        first = evaluate(data, today=today, policy=trusted_policy)
        second = evaluate(data, today=today, policy=trusted_policy)
        assert first == second


# ============================================================================
# Horizon Checks
# ============================================================================

class TestHorizon:
    """Tests for the future-day horizon and the calendar-year cap."""

    def test_selected_date_beyond_horizon(self, make_request, today, trusted_policy):
        verdict = evaluate(make_request(futureDays=10), today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == "Cannot book more than 10 days in the future"
        assert verdict.error_message == ""

    def test_last_night_beyond_horizon(self, make_request, today, trusted_policy):
        # Nights run 12-15 .. 12-18; the horizon ends on 12-17
        verdict = evaluate(make_request(futureDays=16), today=today, policy=trusted_policy)
        assert verdict.message == "Cannot book more than 16 days in the future"

    def test_last_night_on_horizon(self, make_request, today, trusted_policy):
        assert evaluate(make_request(futureDays=17), today=today, policy=trusted_policy).status is True

    def test_calendar_year_cap(self, make_request, today, trusted_policy):
        data = make_request(selectedDate="2026-11-30", additionalNights=2, futureDays=400)
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == "Cannot book more than 1 year(s) in the future"

    def test_calendar_year_cap_boundary(self, make_request, today, trusted_policy):
        data = make_request(selectedDate="2026-11-30", additionalNights=1, futureDays=400)
        assert evaluate(data, today=today, policy=trusted_policy).status is True

    def test_restricted_policy_has_no_year_cap(self, make_request, today, restricted_policy):
        data = make_request(
            selectedDate="2026-11-30",
            additionalNights=2,
            futureDays=400,
            allowAdditionalNights=True,
        )
        assert evaluate(data, today=today, policy=restricted_policy).status is True

    def test_horizon_checked_before_blocklist(self, make_request, today, trusted_policy):
        data = make_request(futureDays=10, blockedNoYearly=["2025-12-15"])
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "Cannot book more than 10 days in the future"

    def test_very_large_horizon(self, make_request, today, trusted_policy):
        assert evaluate(make_request(futureDays=3_000_000), today=today, policy=trusted_policy).status is True

    def test_stay_past_calendar_end(self, make_request, today, trusted_policy):
        data = make_request(selectedDate="9999-12-30", additionalNights=3, futureDays=3_000_000)
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == "Cannot book more than 3000000 days in the future"
        assert verdict.error_message == ""


# ============================================================================
# Blocked Dates
# ============================================================================

class TestBlockedDates:
    """Tests for yearly and one-time blocked dates."""

    def test_earliest_blocked_night_is_reported(self, make_request, today, trusted_policy):
        data = make_request(blockedNoYearly=["2025-12-17"], blockedYearly=["12/16"])
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == "Date blocked: 2025-12-16"

    def test_yearly_range_object(self, make_request, today, trusted_policy):
        data = make_request(blockedYearly=[{"start": "2019-12-18", "end": "2019-12-26"}])
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "Date blocked: 2025-12-18"

    def test_entry_for_other_space_is_ignored(self, make_request, today, trusted_policy):
        data = make_request(
            selectedDate="2025-12-10",
            additionalNights=1,
            space=2,
            blockedNoYearly=[{"start": "2025-12-10", "end": "2025-12-10", "spaces": [1]}],
        )
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.status is True
        assert verdict.message == ""

    def test_entry_for_requested_space_blocks(self, make_request, today, trusted_policy):
        data = make_request(
            selectedDate="2025-12-10",
            additionalNights=1,
            space=1,
            blockedNoYearly=[{"start": "2025-12-10", "end": "2025-12-10", "spaces": [1]}],
        )
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "Date blocked: 2025-12-10"

    def test_winter_range_ending_on_leap_day(self, make_request, today, trusted_policy):
        data = make_request(blockedYearly=[{"start": "2023-12-01", "end": "2024-02-29"}])
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == "Date blocked: 2025-12-15"
        assert verdict.error_message == ""

    def test_stay_after_winter_range(self, make_request, today, trusted_policy):
        # Monday 2026-03-02 and Tuesday 2026-03-03 fall after the range
        data = make_request(
            selectedDate="2026-03-02",
            additionalNights=1,
            futureDays=120,
            blockedYearly=[{"start": "2023-12-01", "end": "2024-02-29"}],
        )
        assert evaluate(data, today=today, policy=trusted_policy).status is True

    def test_blocked_date_checked_before_same_day(self, make_request, today, trusted_policy):
        data = make_request(selectedDate="2025-12-01", additionalNights=1, blockedNoYearly=["2025-12-02"])
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "Date blocked: 2025-12-02"


class TestBlocklistWarnings:
    """Tests for how ignored blocklist entries surface in the verdict."""

    def test_warning_on_accepted_stay(self, make_request, today, trusted_policy):
        verdict = evaluate(make_request(blockedYearly=["13-32"]), today=today, policy=trusted_policy)
        assert verdict.status is True
        assert verdict.message == IGNORED_ENTRIES_MESSAGE
        assert "13-32" in verdict.error_message

    def test_warning_kept_on_business_rejection(self, make_request, today, trusted_policy):
        data = make_request(blockedYearly=["nope"], daysInAdvance=20)
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == "Bookings must be made at least 20 days in advance"
        assert verdict.error_message == "Ignored invalid blockedYearly entries: ['nope']"

    def test_warning_dropped_on_malformed_bookings(self, make_request, today, trusted_policy):
        data = make_request(blockedYearly=["nope"], allBookings=[42])
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == ""
        assert verdict.error_message == INVALID_BOOKING_RANGE

    def test_restricted_policy_ignores_legacy_strings(self, make_request, today, restricted_policy):
        data = make_request(blockedYearly=["12/16"], allowAdditionalNights=True)
        verdict = evaluate(data, today=today, policy=restricted_policy)
        assert verdict.status is True
        assert verdict.message == IGNORED_ENTRIES_MESSAGE
        assert verdict.error_message == "Ignored invalid blockedYearly entries: ['12/16']"


# ============================================================================
# Same-Day and Advance Notice
# ============================================================================

class TestLeadTime:
    """Tests for same-day and advance-notice rules."""

    def test_same_day_rejected(self, make_request, today, trusted_policy):
        data = make_request(selectedDate="2025-12-01", additionalNights=1, daysInAdvance=0)
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == SAME_DAY_NOT_ALLOWED
        assert verdict.error_message == ""

    def test_same_day_message_wins_over_advance(self, make_request, today, trusted_policy):
        data = make_request(selectedDate="2025-12-01", additionalNights=1, daysInAdvance=5)
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == SAME_DAY_NOT_ALLOWED

    def test_same_day_allowed_but_advance_required(self, make_request, today, trusted_policy):
        data = make_request(selectedDate="2025-12-01", additionalNights=1, sameDayBooking=True)
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "Bookings must be made at least 2 days in advance"

    @pytest.mark.parametrize("selected,accepted", [
        ("2025-12-05", False),
        ("2025-12-06", True),
    ])
    def test_advance_boundary(self, make_request, today, trusted_policy, selected, accepted):
        data = make_request(
            selectedDate=selected,
            additionalNights=1,
            daysInAdvance=5,
            daysAvailableToHost=ALL_DAYS,
            allBookings=[],
        )
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.status is accepted
        if not accepted:
            assert verdict.message == "Bookings must be made at least 5 days in advance"

    def test_past_date_rejected(self, make_request, today, trusted_policy):
        data = make_request(selectedDate="2025-11-28", additionalNights=1, daysInAdvance=0)
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "Bookings must be made at least 0 days in advance"

    def test_longer_notice_never_turns_rejection_into_acceptance(self, make_request, today, trusted_policy):
        results = [
            evaluate(make_request(daysInAdvance=days), today=today, policy=trusted_policy).status
            for days in range(21)
        ]
        # Offset of the sample stay is 14 days
        assert results == [True] * 15 + [False] * 6


# ============================================================================
# Per-Night Scan
# ============================================================================

class TestNightlyScan:
    """Tests for the hosting-day and conflict checks on each night."""

    def test_hosting_day_unavailable(self, make_request, today, trusted_policy):
        data = make_request(selectedDate="2025-12-19", additionalNights=2)
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == "Hosting not available on Saturday"

    def test_hosting_day_wins_over_conflict(self, make_request, today, trusted_policy):
        data = make_request(
            selectedDate="2025-12-19",
            additionalNights=2,
            allBookings=[booking("2025-12-20", "2025-12-22")],
        )
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "Hosting not available on Saturday"

    def test_user_conflict_wins_on_same_night(self, make_request, today, trusted_policy):
        data = make_request(
            allBookings=[booking("2025-12-16", "2025-12-17")],
            userBooking=[booking("2025-12-16", "2025-12-17")],
        )
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "You already have a booking on 2025-12-16"

    def test_earliest_night_wins(self, make_request, today, trusted_policy):
        data = make_request(
            allBookings=[booking("2025-12-16", "2025-12-17")],
            userBooking=[booking("2025-12-17", "2025-12-18")],
        )
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "Booking conflict: 2025-12-16 is already booked"

    def test_checkout_day_of_existing_booking_is_free(self, make_request, today, trusted_policy):
        data = make_request(allBookings=[booking("2025-12-12", "2025-12-15")])
        assert evaluate(data, today=today, policy=trusted_policy).status is True

    def test_stay_ending_on_existing_check_in(self, make_request, today, trusted_policy):
        # Last night is 12-18; a booking from 12-19 does not overlap
        data = make_request(allBookings=[booking("2025-12-19", "2025-12-21")])
        assert evaluate(data, today=today, policy=trusted_policy).status is True


class TestChangeRequests:
    """Tests for moving an existing booking."""

    def _data(self, make_request, is_change_request):
        current = booking("2025-12-15", "2025-12-17")
        return make_request(
            additionalNights=1,
            isChangeRequest=is_change_request,
            currentBooking=current,
            userBooking=[current],
            allBookings=[current],
        )

    def test_change_request_may_reuse_own_nights(self, make_request, today, trusted_policy):
        verdict = evaluate(self._data(make_request, True), today=today, policy=trusted_policy)
        assert verdict.status is True

    def test_new_booking_conflicts_with_own_nights(self, make_request, today, trusted_policy):
        verdict = evaluate(self._data(make_request, False), today=today, policy=trusted_policy)
        assert verdict.message == "You already have a booking on 2025-12-15"


# ============================================================================
# Malformed Input
# ============================================================================

class TestMalformedInput:
    """Tests for verdicts describing malformed input."""

    def test_invalid_json(self, today, trusted_policy):
        verdict = evaluate("{oops", today=today, policy=trusted_policy)
        assert verdict.to_wire() == {"status": False, "message": "", "errorMessage": INVALID_JSON}

    def test_non_object_input(self, today, trusted_policy):
        verdict = evaluate(["2025-12-15"], today=today, policy=trusted_policy)
        assert verdict.error_message == INVALID_INPUT_TYPE

    def test_field_error(self, make_request, today, trusted_policy):
        verdict = evaluate(make_request(futureDays="90"), today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.error_message == "Future days must be a non-negative integer"

    def test_selected_date_with_trailing_newline(self, make_request, today, trusted_policy):
        verdict = evaluate(make_request(selectedDate="2025-12-15\n"), today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.error_message == "Invalid selected date format. Expected YYYY-MM-DD"

    def test_null_space_is_treated_as_omitted(self, make_request, today, trusted_policy):
        data = make_request(
            space=None,
            blockedNoYearly=[{"start": "2025-12-15", "end": "2025-12-15", "spaces": [1]}],
        )
        assert evaluate(data, today=today, policy=trusted_policy).status is True

    def test_bad_pair_reported_after_advance_check(self, make_request, today, trusted_policy):
        data = make_request(allBookings=[{"checkIn": "bad"}], daysInAdvance=20)
        verdict = evaluate(data, today=today, policy=trusted_policy)
        assert verdict.message == "Bookings must be made at least 20 days in advance"

    def test_bad_pair(self, make_request, today, trusted_policy):
        verdict = evaluate(make_request(allBookings=[{"checkIn": "bad"}]), today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == ""
        assert verdict.error_message == INVALID_BOOKING_RANGE

    def test_bad_user_pair(self, make_request, today, trusted_policy):
        verdict = evaluate(make_request(userBooking=["2025-12-15"]), today=today, policy=trusted_policy)
        assert verdict.error_message == INVALID_USER_BOOKING_RANGE

    def test_restricted_opt_in(self, make_request, today, restricted_policy):
        verdict = evaluate(make_request(), today=today, policy=restricted_policy)
        assert verdict.status is False
        assert verdict.message == ADDITIONAL_NIGHTS_NOT_ALLOWED

    def test_unexpected_error(self, make_request, today, trusted_policy, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(availability_service, "compile_blocklist", explode)
        verdict = evaluate(make_request(), today=today, policy=trusted_policy)
        assert verdict.status is False
        assert verdict.message == UNEXPECTED_ERROR
        assert verdict.error_message == "Unexpected error: boom"

    def test_unexpected_error_is_logged_with_context(self, make_request, today, trusted_policy, monkeypatch, caplog):
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(availability_service, "compile_blocklist", explode)
        with caplog.at_level(logging.ERROR, logger="services.availability_service"):
            evaluate(make_request(), today=today, policy=trusted_policy)

        context_records = [r for r in caplog.records if r.getMessage() == "Exception in context: RuntimeError"]
        assert len(context_records) == 1
        assert context_records[0].selected_date == "2025-12-15"
        assert context_records[0].variant == "trusted"

    def test_outcome_is_logged_with_context(self, make_request, today, trusted_policy, caplog):
        with caplog.at_level(logging.INFO, logger="services.availability_service"):
            evaluate(make_request(futureDays=10), today=today, policy=trusted_policy)

        record = [r for r in caplog.records if r.getMessage() == "Stay rejected"][-1]
        assert record.reason == "Cannot book more than 10 days in the future"
        assert record.additional_nights == 3


# ============================================================================
# Service Wrapper
# ============================================================================

class TestAvailabilityService:
    """Tests for the service-layer wrapper."""

    def test_uses_injected_clock(self, make_request):
        service = AvailabilityService(policy=TRUSTED_POLICY, clock=lambda: date(2025, 12, 1))
        assert service.evaluate_wire(make_request()) == {"status": True, "message": "", "errorMessage": ""}

    def test_clock_moves_the_reference_date(self, make_request):
        service = AvailabilityService(policy=TRUSTED_POLICY, clock=lambda: date(2025, 12, 15))
        assert service.evaluate(make_request()).message == SAME_DAY_NOT_ALLOWED

    def test_singleton(self):
        assert get_availability_service() is get_availability_service()
