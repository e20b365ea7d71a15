"""
Blocklist compilation.

Hosts declare blocked dates in two lists: ``blockedYearly`` (recurs every
year, matched by month-day) and ``blockedNoYearly`` (one-time, matched by the
full date). Entries that cannot be parsed are skipped and reported back as a
warning; they never abort the evaluation.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from core.booking_policy import EnginePolicy
from core.utils_datetime import (
    MONTH_DAY_ANCHOR_YEAR,
    expand_month_day_range,
    expand_range,
    format_iso_date,
    parse_iso_date,
    to_month_day,
)
from domain.enums import BlockScope
from domain.models import (
    BlocklistWarning,
    BookingRequest,
    LegacyCompact,
    RangeWithScope,
    decode_block_entry,
)


logger = logging.getLogger(__name__)


IGNORED_ENTRIES_MESSAGE = "Some blocked dates were ignored due to invalid format"

# Wire names used when reporting ignored entries
SCOPE_FIELD_NAMES = {
    BlockScope.YEARLY: "blockedYearly",
    BlockScope.ONE_TIME: "blockedNoYearly",
}

LEGACY_MONTH_DAY_PATTERN = re.compile(r'([0-9]{1,2})[/-]([0-9]{1,2})')
LEGACY_US_DATE_PATTERN = re.compile(r'([0-9]{1,2})/([0-9]{1,2})/([0-9]{2}|[0-9]{4})')


# ============================================================================
# Legacy String Parsing
# ============================================================================

def parse_legacy_month_day(text: str) -> Optional[str]:
    """
    Parse a legacy yearly entry ("M/D" or "M-D") into an MM-DD key.

    Returns:
        MM-DD string or None if the entry does not name a real month-day
    """
    match = LEGACY_MONTH_DAY_PATTERN.fullmatch(text)
    if not match:
        return None

    month, day = int(match.group(1)), int(match.group(2))
    try:
        # Leap anchor year so that 2/29 stays valid
        parsed = date(MONTH_DAY_ANCHOR_YEAR, month, day)
    except ValueError:
        return None
    return to_month_day(parsed)


def parse_legacy_date(text: str) -> Optional[str]:
    """
    Parse a legacy one-time entry ("YYYY-MM-DD", "M/D/YY" or "M/D/YYYY").

    Two-digit years are read as 2000 + YY.

    Returns:
        YYYY-MM-DD string or None if the entry does not name a real date
    """
    parsed = parse_iso_date(text)
    if parsed is not None:
        return format_iso_date(parsed)

    match = LEGACY_US_DATE_PATTERN.fullmatch(text)
    if not match:
        return None

    month, day = int(match.group(1)), int(match.group(2))
    year_text = match.group(3)
    year = int(year_text) if len(year_text) == 4 else 2000 + int(year_text)
    try:
        return format_iso_date(date(year, month, day))
    except ValueError:
        return None


# ============================================================================
# Compiled Blocklist
# ============================================================================

@dataclass
class CompiledBlocklist:
    """Lookup sets built from a request's blocklists."""
    day_of_year: Set[str] = field(default_factory=set)  # MM-DD
    absolute: Set[str] = field(default_factory=set)     # YYYY-MM-DD
    invalid_entries: Dict[BlockScope, List[str]] = field(
        default_factory=lambda: {BlockScope.YEARLY: [], BlockScope.ONE_TIME: []}
    )

    @property
    def has_invalid_entries(self) -> bool:
        return any(self.invalid_entries.values())

    @property
    def warning(self) -> Optional[BlocklistWarning]:
        """Warning describing ignored entries, or None if every entry was usable."""
        if not self.has_invalid_entries:
            return None

        parts = []
        for scope in (BlockScope.YEARLY, BlockScope.ONE_TIME):
            entries = self.invalid_entries[scope]
            if entries:
                quoted = ", ".join(f"'{entry}'" for entry in entries)
                parts.append(f"Ignored invalid {SCOPE_FIELD_NAMES[scope]} entries: [{quoted}]")

        return BlocklistWarning(message=IGNORED_ENTRIES_MESSAGE, detail=" ".join(parts))

    def is_blocked(self, value: date) -> bool:
        """Check a date against both the one-time and the yearly sets."""
        return format_iso_date(value) in self.absolute or to_month_day(value) in self.day_of_year

    def first_blocked(self, dates: Iterable[date]) -> Optional[date]:
        """Earliest blocked date in iteration order, or None."""
        for value in dates:
            if self.is_blocked(value):
                return value
        return None


# ============================================================================
# Compilation
# ============================================================================

def _compile_entries(
    entries: List,
    scope: BlockScope,
    space: Optional[int],
    policy: EnginePolicy,
    blocklist: CompiledBlocklist
) -> None:
    target = blocklist.day_of_year if scope == BlockScope.YEARLY else blocklist.absolute
    invalid = blocklist.invalid_entries[scope]

    for raw in entries:
        entry = decode_block_entry(raw)

        if isinstance(entry, LegacyCompact):
            if not policy.accept_legacy_blocklist_strings:
                invalid.append(entry.describe())
                continue
            if scope == BlockScope.YEARLY:
                key = parse_legacy_month_day(entry.text)
            else:
                key = parse_legacy_date(entry.text)
            if key is None:
                invalid.append(entry.describe())
            else:
                target.add(key)

        elif isinstance(entry, RangeWithScope):
            if not entry.applies_to_space(space):
                continue
            start = parse_iso_date(entry.start)
            end = parse_iso_date(entry.end)
            if start is None or end is None:
                invalid.append(entry.describe())
                continue
            if scope == BlockScope.YEARLY:
                target.update(expand_month_day_range(to_month_day(start), to_month_day(end)))
            else:
                target.update(format_iso_date(d) for d in expand_range(start, end, end_inclusive=True))

        else:
            invalid.append(entry.describe())


def compile_blocklist(request: BookingRequest, policy: EnginePolicy) -> CompiledBlocklist:
    """
    Compile a request's blocklists into lookup sets.

    Args:
        request: Validated booking request
        policy: Engine policy (controls legacy string support)

    Returns:
        CompiledBlocklist, including any entries that had to be ignored
    """
    blocklist = CompiledBlocklist()
    _compile_entries(request.blocked_yearly, BlockScope.YEARLY, request.space, policy, blocklist)
    _compile_entries(request.blocked_no_yearly, BlockScope.ONE_TIME, request.space, policy, blocklist)

    if blocklist.has_invalid_entries:
        logger.warning(f"Ignored invalid blocklist entries: {blocklist.warning.detail}")

    return blocklist
