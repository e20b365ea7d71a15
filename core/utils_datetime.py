"""
Calendar-date utilities for the booking engine.

All arithmetic is done on plain calendar dates (no time of day), so offsets
between two dates are exact whole days regardless of the host's local zone.
The only place a timezone matters is reading "today" from the clock.
"""
from datetime import datetime, timedelta, date
from typing import List, Optional, Set
import re
import pytz

from core.config import settings
from domain.enums import Weekday


# Timezone configuration
TIMEZONE = pytz.timezone(settings.timezone)

ISO_DATE_PATTERN = re.compile(r'([0-9]{4})-([0-9]{2})-([0-9]{2})')

# Leap year used to walk month-day ranges so that 02-29 is reachable
MONTH_DAY_ANCHOR_YEAR = 2000

WEEKDAY_NAMES = [day.value for day in Weekday]


def get_current_datetime(tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(tz or TIMEZONE)


def get_current_date(tz: Optional[pytz.BaseTzInfo] = None) -> date:
    """Get today's calendar date in the configured timezone."""
    return get_current_datetime(tz).date()


def parse_iso_date(value) -> Optional[date]:
    """
    Parse a YYYY-MM-DD string into a date.

    A string is accepted only if it matches the fixed 4-2-2 digit pattern
    and the date it names actually exists (2025-04-31 is rejected rather
    than rolled over to May 1st).

    Args:
        value: Candidate value, usually a string

    Returns:
        date object or None if the value is not a valid calendar date
    """
    if not isinstance(value, str):
        return None

    match = ISO_DATE_PATTERN.fullmatch(value)
    if not match:
        return None

    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_iso_date(value: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def expand_range(start: date, end: date, end_inclusive: bool = False) -> List[date]:
    """
    Expand a date range into the ordered list of individual dates.

    Check-in/checkout pairs are end-exclusive (the checkout night is not
    occupied); blocklist ranges are end-inclusive.

    Args:
        start: First date of the range
        end: Last date (inclusive) or the day after the last date (exclusive)
        end_inclusive: Whether ``end`` itself belongs to the range

    Returns:
        List of dates, empty when the range is empty or reversed
    """
    dates = []
    current = start
    while current < end or (end_inclusive and current == end):
        dates.append(current)
        if current == date.max:
            break
        current += timedelta(days=1)
    return dates


def to_month_day(value) -> str:
    """
    Extract the MM-DD component of a date, ignoring the year.

    Args:
        value: date object or YYYY-MM-DD string
    """
    if isinstance(value, str):
        parsed = parse_iso_date(value)
        if parsed is None:
            raise ValueError(f"Invalid date: {value!r}")
        value = parsed
    return f"{value.month:02d}-{value.day:02d}"


def parse_month_day(value: str) -> date:
    """Parse an MM-DD key into a date in the anchor year."""
    month, day = (int(part) for part in value.split('-'))
    return date(MONTH_DAY_ANCHOR_YEAR, month, day)


def expand_month_day_range(start_mmdd: str, end_mmdd: str) -> Set[str]:
    """
    Expand an annual MM-DD range into the set of MM-DD keys it covers.

    Walks real calendar days through a leap anchor year, so only dates that
    exist are produced. When the end precedes the start the range wraps
    across the year boundary: 12-30 -> 01-02 covers 12-30, 12-31, 01-01
    and 01-02.

    Args:
        start_mmdd: First month-day, inclusive
        end_mmdd: Last month-day, inclusive

    Returns:
        Set of MM-DD strings
    """
    start = parse_month_day(start_mmdd)
    end = parse_month_day(end_mmdd)

    if end >= start:
        return {to_month_day(d) for d in expand_range(start, end, end_inclusive=True)}

    # Wrapped range: both halves stay inside the anchor year so 02-29 survives
    year_end = date(MONTH_DAY_ANCHOR_YEAR, 12, 31)
    year_start = date(MONTH_DAY_ANCHOR_YEAR, 1, 1)
    days = expand_range(start, year_end, end_inclusive=True) + expand_range(year_start, end, end_inclusive=True)
    return {to_month_day(d) for d in days}


def add_calendar_years(value: date, years: int) -> date:
    """
    Move a date forward by whole calendar years.

    Feb 29 rolls over to Mar 1 when the target year is not a leap year.
    Years past the end of the calendar clamp to ``date.max``.
    """
    if value.year + years > date.max.year:
        return date.max
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return date(value.year + years, 3, 1)


def add_days_clamped(value: date, days: int) -> date:
    """Move a date forward by ``days``, clamping to ``date.max`` instead of overflowing."""
    if days > (date.max - value).days:
        return date.max
    return value + timedelta(days=days)


def days_between(start: date, end: date) -> int:
    """Whole-day offset from ``start`` to ``end`` (negative when end is earlier)."""
    return (end - start).days


def weekday_name(value: date) -> str:
    """English full weekday name for a date, independent of the process locale."""
    return WEEKDAY_NAMES[value.weekday()]
