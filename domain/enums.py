"""Domain enums for the stay eligibility validator."""

from enum import Enum


class EngineVariant(str, Enum):
    """Deployment variant of the eligibility engine."""

    TRUSTED = "trusted"
    RESTRICTED = "restricted"


class Weekday(str, Enum):
    """Days of the week, valued by their English full name as sent on the wire."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class BlockScope(str, Enum):
    """How a blocked range recurs."""

    YEARLY = "yearly"      # keyed by MM-DD, repeats every year
    ONE_TIME = "one_time"  # keyed by YYYY-MM-DD
