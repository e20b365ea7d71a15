"""
Blocklist resolver.

Authoring-side counterpart of the blocklist compiler: takes a host's block
declarations (``MM/DD/YY`` ranges, each optionally scoped to spaces and
marked yearly or not) and lists the dates that are blocked for the chosen
space(s), ready for display in a calendar widget.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Set

from core.utils_datetime import expand_range, parse_iso_date
from domain.models import BlockedDatesResolution
from services.blocklist_service import parse_legacy_date
from services.booking_validation import INVALID_INPUT_TYPE, INVALID_JSON


logger = logging.getLogger(__name__)


NON_YEARLY_FLAGS = (False, "no")


@dataclass
class BlockedDay:
    """Everything known about one blocked calendar day."""
    blocked_spaces: Set[str] = field(default_factory=set)
    has_global: bool = False
    is_yearly: bool = True


def _parse_block_date(value: Any) -> Optional[date]:
    if not isinstance(value, str):
        return None
    normalized = parse_legacy_date(value.strip())
    return parse_iso_date(normalized) if normalized else None


def _collect_blocked_days(blocks: List[Any], invalid: List[str]) -> Dict[date, BlockedDay]:
    days: Dict[date, BlockedDay] = {}

    for block in blocks:
        if not isinstance(block, dict):
            invalid.append(json.dumps(block, separators=(",", ":"), default=str))
            continue

        start = _parse_block_date(block.get("start date"))
        end = _parse_block_date(block.get("end date"))
        if start is None or end is None:
            invalid.append(json.dumps(block, separators=(",", ":"), default=str))
            continue

        spaces = block.get("space")
        scoped = isinstance(spaces, list) and len(spaces) > 0

        for day in expand_range(start, end, end_inclusive=True):
            state = days.setdefault(day, BlockedDay())
            if scoped:
                state.blocked_spaces.update(str(space) for space in spaces)
            else:
                state.has_global = True
            # One non-yearly block makes the whole day non-yearly
            if block.get("yearly") in NON_YEARLY_FLAGS:
                state.is_yearly = False

    return days


def resolve_blocked_dates(request: Any, match_all_spaces: bool = False) -> BlockedDatesResolution:
    """
    Resolve block declarations into display lists.

    Args:
        request: Mapping (or JSON text) with ``blocked``, and optionally
            ``spaces`` (target spaces) and ``selectSpace``
        match_all_spaces: Without ``selectSpace``, require every target space
            to be blocked instead of any one of them

    Returns:
        BlockedDatesResolution with ``MM/DD`` yearly dates sorted by
        month-day and ``MM/DD/YY`` one-time dates sorted chronologically
    """
    if isinstance(request, (str, bytes, bytearray)):
        try:
            request = json.loads(request)
        except (ValueError, UnicodeDecodeError):
            return BlockedDatesResolution(error_message=INVALID_JSON)

    if not isinstance(request, dict):
        return BlockedDatesResolution(error_message=INVALID_INPUT_TYPE)

    target_spaces = [str(space) for space in (request.get("spaces") or []) if space]
    select_space = request.get("selectSpace")
    select_space = str(select_space) if select_space is not None else None

    invalid: List[str] = []
    blocked_days = _collect_blocked_days(request.get("blocked") or [], invalid)

    yearly: Set[date] = set()
    not_yearly: Set[date] = set()
    for day, state in blocked_days.items():
        if state.has_global:
            is_blocked = True
        elif select_space is not None:
            is_blocked = select_space in state.blocked_spaces
        elif match_all_spaces:
            is_blocked = all(space in state.blocked_spaces for space in target_spaces)
        else:
            is_blocked = any(space in state.blocked_spaces for space in target_spaces)

        if is_blocked:
            (yearly if state.is_yearly else not_yearly).add(day)

    # A yearly day can appear once per declared year; keep one per month-day
    month_days = sorted({(day.month, day.day) for day in yearly})

    error_message = ""
    if invalid:
        logger.warning(f"Ignored invalid block declarations: {invalid}")
        quoted = ", ".join(f"'{entry}'" for entry in invalid)
        error_message = f"Ignored invalid blocked entries: [{quoted}]"

    return BlockedDatesResolution(
        dates_yearly=[f"{month:02d}/{day:02d}" for month, day in month_days],
        dates_not_yearly=[
            f"{day.month:02d}/{day.day:02d}/{day.year % 100:02d}" for day in sorted(not_yearly)
        ],
        error_message=error_message,
    )
