"""Enumerations shared across the recurrence engine."""

from datetime import date
from enum import Enum, IntEnum


class Frequency(str, Enum):
    """Supported recurrence frequencies."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class Weekday(IntEnum):
    """Day of week, numbered from Sunday."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        """Weekday of a date or datetime (Python counts from Monday)."""
        return cls((value.weekday() + 1) % 7)
