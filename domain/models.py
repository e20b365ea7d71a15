"""Domain models for the stay eligibility validator."""

import json
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ConfigDict


# ============================================================================
# Verdict (wire output)
# ============================================================================

class Verdict(BaseModel):
    """
    Outcome of one eligibility check.

    ``message`` carries business-rule rejections and blocklist warnings meant
    for end users; ``error_message`` (``errorMessage`` on the wire) carries
    malformed-input and internal-fault descriptions.
    """

    status: bool
    message: str = ""
    error_message: str = Field(default="", alias="errorMessage")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def accepted(cls, warning: Optional["BlocklistWarning"] = None) -> "Verdict":
        """Successful verdict, optionally carrying a blocklist warning."""
        if warning is None:
            return cls(status=True)
        return cls(status=True, message=warning.message, error_message=warning.detail)

    @classmethod
    def rejected(cls, message: str, warning: Optional["BlocklistWarning"] = None) -> "Verdict":
        """Business-rule rejection; a blocklist warning detail stays in error_message."""
        return cls(status=False, message=message, error_message=warning.detail if warning else "")

    @classmethod
    def malformed(cls, error_message: str) -> "Verdict":
        """Malformed-input verdict."""
        return cls(status=False, error_message=error_message)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with the wire field names."""
        return self.model_dump(by_alias=True)


class BlockedDatesResolution(BaseModel):
    """Display lists produced by the blocklist resolver."""

    dates_yearly: List[str] = Field(default_factory=list, alias="datesYearly")
    dates_not_yearly: List[str] = Field(default_factory=list, alias="datesNotYearly")
    error_message: str = Field(default="", alias="errorMessage")

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with the wire field names."""
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class BlocklistWarning:
    """Non-fatal report of blocklist entries that were ignored."""
    message: str
    detail: str


# ============================================================================
# Booking request
# ============================================================================

@dataclass(frozen=True)
class BookingRange:
    """A reservation's [check_in, checkout) range; checkout night is not occupied."""
    check_in: date
    checkout: date


@dataclass
class BookingRequest:
    """Validated booking request. Booking and blocklist lists are kept raw."""
    selected_date: date
    additional_nights: int
    is_change_request: bool
    all_bookings: List[Any]
    user_booking: List[Any]
    days_available_to_host: List[Any]
    future_days: int
    same_day_booking: bool
    days_in_advance: int
    current_booking: Optional[BookingRange] = None
    space: Optional[int] = None
    blocked_yearly: List[Any] = field(default_factory=list)
    blocked_no_yearly: List[Any] = field(default_factory=list)
    allow_additional_nights: bool = False

    @property
    def candidate_dates(self) -> List[date]:
        """Every night of the stay: selected_date .. selected_date + additional_nights."""
        return [
            self.selected_date + timedelta(days=offset)
            for offset in range(self.additional_nights + 1)
        ]


# ============================================================================
# Blocklist entries (decoded at the boundary)
# ============================================================================

def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=str)


@dataclass(frozen=True)
class LegacyCompact:
    """Legacy string entry such as "12/25", "7-4", "2025-12-24" or "12/24/25"."""
    raw: str

    @property
    def text(self) -> str:
        return self.raw.strip()

    def describe(self) -> str:
        return self.text


@dataclass(frozen=True)
class RangeWithScope:
    """Object entry ``{start, end, spaces?}`` with end-inclusive YYYY-MM-DD bounds."""
    start: Any
    end: Any
    spaces: Any
    raw: Dict[str, Any]

    def applies_to_space(self, space: Optional[int]) -> bool:
        """
        Check whether the entry applies to the requested space.

        Entries without a usable ``spaces`` list (missing, not a list, or
        empty) apply to every space.
        """
        if not isinstance(self.spaces, list) or not self.spaces:
            return True
        return space in self.spaces

    def describe(self) -> str:
        return _compact_json(self.raw)


@dataclass(frozen=True)
class UnrecognizedEntry:
    """Entry matching neither known shape."""
    raw: Any

    def describe(self) -> str:
        return _compact_json(self.raw)


BlockEntry = Union[LegacyCompact, RangeWithScope, UnrecognizedEntry]


def decode_block_entry(raw: Any) -> BlockEntry:
    """Classify a raw blocklist entry by shape."""
    if isinstance(raw, str):
        return LegacyCompact(raw)
    if isinstance(raw, dict) and raw.get("start") and raw.get("end"):
        return RangeWithScope(
            start=raw["start"],
            end=raw["end"],
            spaces=raw.get("spaces"),
            raw=raw,
        )
    return UnrecognizedEntry(raw)
