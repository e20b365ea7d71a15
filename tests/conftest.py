"""Pytest configuration and fixtures for booking eligibility tests."""
import copy
import pytest
from datetime import date

from core.booking_policy import TRUSTED_POLICY, RESTRICTED_POLICY


WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
ALL_DAYS = WEEKDAYS + ["Saturday", "Sunday"]


@pytest.fixture(scope="function")
def today():
    """Fixed reference date: Monday, December 1st 2025."""
    return date(2025, 12, 1)


@pytest.fixture(scope="function")
def trusted_policy():
    """Server-side policy."""
    return TRUSTED_POLICY


@pytest.fixture(scope="function")
def restricted_policy():
    """Client-side policy."""
    return RESTRICTED_POLICY


@pytest.fixture(scope="function")
def sample_request_data():
    """
    A request that is accepted on the reference date.

    Monday 15 to Thursday 18 December, weekday hosting only, with an
    unrelated reservation earlier in the month.
    """
    return {
        "selectedDate": "2025-12-15",
        "additionalNights": 3,
        "isChangeRequest": False,
        "allBookings": [{"checkIn": "2025-12-01", "checkout": "2025-12-06"}],
        "userBooking": [],
        "daysAvailableToHost": list(WEEKDAYS),
        "futureDays": 90,
        "sameDayBooking": False,
        "daysInAdvance": 2,
    }


@pytest.fixture(scope="function")
def make_request(sample_request_data):
    """Factory fixture returning a fresh copy of the sample request with overrides."""
    def _make(**overrides):
        data = copy.deepcopy(sample_request_data)
        data.update(overrides)
        return data
    return _make
