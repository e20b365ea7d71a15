"""Domain layer for the stay eligibility validator."""

from .enums import (
    EngineVariant,
    Weekday,
    BlockScope,
)
from .models import (
    Verdict,
    BlockedDatesResolution,
    BlocklistWarning,
    BookingRange,
    BookingRequest,
    LegacyCompact,
    RangeWithScope,
    UnrecognizedEntry,
    BlockEntry,
    decode_block_entry,
)

__all__ = [
    # Enums
    "EngineVariant",
    "Weekday",
    "BlockScope",
    # Models
    "Verdict",
    "BlockedDatesResolution",
    "BlocklistWarning",
    "BookingRange",
    "BookingRequest",
    "LegacyCompact",
    "RangeWithScope",
    "UnrecognizedEntry",
    "BlockEntry",
    "decode_block_entry",
]
