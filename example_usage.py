"""
Example usage of the stay eligibility validator.

Demonstrates both engine variants on the same requests, plus the blocklist
resolver used when hosts author their calendars.
"""

import json
from datetime import date

from core.booking_policy import RESTRICTED_POLICY, TRUSTED_POLICY
from core.logging import setup_logging
from services.availability_service import AvailabilityService
from services.blocklist_resolver import resolve_blocked_dates


WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


def run_example_requests(requests: list, today: date):
    """
    Evaluate sample requests under both engine variants.

    Args:
        requests: (title, request) pairs to evaluate
        today: Reference date for the evaluation
    """
    services = {
        "trusted": AvailabilityService(policy=TRUSTED_POLICY, clock=lambda: today),
        "restricted": AvailabilityService(policy=RESTRICTED_POLICY, clock=lambda: today),
    }

    for title, request in requests:
        print("=" * 60)
        print(title)
        print("=" * 60)
        for name, service in services.items():
            print(f"{name:>10}: {json.dumps(service.evaluate_wire(request))}")


if __name__ == "__main__":
    setup_logging()

    base_request = {
        "selectedDate": "2025-12-15",
        "additionalNights": 3,
        "isChangeRequest": False,
        "allBookings": [{"checkIn": "2025-12-01", "checkout": "2025-12-06"}],
        "userBooking": [],
        "daysAvailableToHost": WEEKDAYS,
        "futureDays": 90,
        "sameDayBooking": False,
        "daysInAdvance": 2,
    }

    run_example_requests([
        ("### EXAMPLE 1: Four weekday nights ###", base_request),
        ("### EXAMPLE 2: Opted in to extra nights ###",
         {**base_request, "allowAdditionalNights": True}),
        ("### EXAMPLE 3: Blocked Christmas week ###",
         {**base_request, "selectedDate": "2025-12-22", "allowAdditionalNights": True,
          "blockedYearly": ["12/24", {"start": "2025-12-25", "end": "2025-12-26"}]}),
        ("### EXAMPLE 4: Weekend stay ###",
         {**base_request, "selectedDate": "2025-12-19", "additionalNights": 2,
          "allowAdditionalNights": True}),
        ("### EXAMPLE 5: Malformed request ###", "{not json"),
    ], today=date(2025, 12, 1))

    print("\n\n### EXAMPLE 6: Resolve blocked dates for spaces 1 and 2 ###")
    resolution = resolve_blocked_dates({
        "spaces": [1, 2],
        "blocked": [
            {"yearly": True, "start date": "10/01/2024", "end date": "10/02/2024"},
            {"yearly": False, "space": ["1"], "start date": "10/11/2025", "end date": "10/12/2025"},
            {"yearly": False, "space": ["2"], "start date": "10/11/2025", "end date": "10/12/2025"},
            {"yearly": True, "space": ["1"], "start date": "10/21/2024", "end date": "10/22/2024"},
        ],
    }, match_all_spaces=True)
    print(json.dumps(resolution.to_wire(), indent=2))
