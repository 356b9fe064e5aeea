"""Calendar primitives used by the recurrence generator.

A ``DateArithmetic`` instance is handed to the generator and the overlay
rather than looked up globally, so tests and callers can swap the week start
or the whole implementation.
"""

import calendar
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from .enums import Weekday


class DateArithmetic:
    """Date arithmetic on a single, already-resolved calendar reference.

    All operations keep the time-of-day and tzinfo of their input.
    """

    def __init__(self, week_start: Weekday = Weekday.SUNDAY):
        self.week_start = Weekday(week_start)

    def add_days(self, value: datetime, days: int) -> datetime:
        return value + timedelta(days=days)

    def add_weeks(self, value: datetime, weeks: int) -> datetime:
        return value + timedelta(weeks=weeks)

    def add_months(self, value: datetime, months: int) -> datetime:
        """Add calendar months, clamping the day to the target month's length."""
        return value + relativedelta(months=months)

    def start_of_week(self, value: datetime) -> datetime:
        """Same time of day on the first day of ``value``'s week."""
        return value - timedelta(days=self.day_offset(Weekday.from_date(value)))

    def day_offset(self, weekday: Weekday) -> int:
        """Number of days ``weekday`` lies after the week start."""
        return (int(weekday) - int(self.week_start)) % 7

    def days_in_month(self, year: int, month: int) -> int:
        return calendar.monthrange(year, month)[1]

    def date_key(self, value: date) -> str:
        """Calendar-day key (``YYYY-MM-DD``) ignoring the time of day."""
        if isinstance(value, datetime):
            value = value.date()
        return value.isoformat()
