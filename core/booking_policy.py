"""
Engine policies for the booking eligibility checks.

The trusted (server-side) and restricted (client-side) deployments run the
same engine; they only differ in which optional checks are switched on.
"""

from dataclasses import dataclass, replace
from typing import Optional, Union

from core.config import settings
from domain.enums import EngineVariant


@dataclass(frozen=True)
class EnginePolicy:
    """Optional checks and tolerances applied by the engine."""
    variant: EngineVariant

    # Reject any night beyond ``max_booking_years`` calendar years from today
    enforce_calendar_year_cap: bool = True
    max_booking_years: int = 1

    # Extra nights require ``allowAdditionalNights=true`` on the request
    require_additional_nights_opt_in: bool = False

    # Accept "M/D", "M-D", "M/D/YY" and "YYYY-MM-DD" blocklist strings
    accept_legacy_blocklist_strings: bool = True

    # 1 -> "positive integer" wording, 0 -> "non-negative integer" wording
    min_additional_nights: int = 1

    @property
    def additional_nights_error(self) -> str:
        """Validation message for an out-of-range ``additionalNights``."""
        if self.min_additional_nights > 0:
            return "Additional nights must be a positive integer"
        return "Additional nights must be a non-negative integer"

    @property
    def calendar_year_cap_message(self) -> str:
        """Rejection message for a night beyond the calendar-year cap."""
        return f"Cannot book more than {self.max_booking_years} year(s) in the future"


TRUSTED_POLICY = EnginePolicy(
    variant=EngineVariant.TRUSTED,
    enforce_calendar_year_cap=True,
    require_additional_nights_opt_in=False,
    accept_legacy_blocklist_strings=True,
    min_additional_nights=1,
)

RESTRICTED_POLICY = EnginePolicy(
    variant=EngineVariant.RESTRICTED,
    enforce_calendar_year_cap=False,
    require_additional_nights_opt_in=True,
    accept_legacy_blocklist_strings=False,
    min_additional_nights=0,
)


def get_policy(variant: Union[EngineVariant, str]) -> EnginePolicy:
    """
    Get the preset policy for an engine variant.

    Raises:
        ValueError: if the variant is unknown
    """
    variant = EngineVariant(variant)
    if variant == EngineVariant.RESTRICTED:
        return RESTRICTED_POLICY
    return replace(TRUSTED_POLICY, max_booking_years=settings.max_booking_years)


# Singleton instance
_default_policy_instance: Optional[EnginePolicy] = None


def get_default_policy() -> EnginePolicy:
    """Get the policy named by ``settings.engine_variant``."""
    global _default_policy_instance
    if _default_policy_instance is None:
        _default_policy_instance = get_policy(settings.engine_variant)
    return _default_policy_instance
