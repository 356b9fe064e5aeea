"""Candidate date generation for recurrence patterns."""

from collections.abc import Iterator
from datetime import datetime
from itertools import islice
import logging
from typing import Callable, Optional

from .date_arithmetic import DateArithmetic
from .enums import Frequency
from .exceptions import (
    InvalidGenerationRequestError,
    InvalidWindowError,
    UnsupportedFrequencyError,
)
from .models import RecurrencePattern
from .settings import EngineSettings

logger = logging.getLogger(__name__)


class RecurrenceGenerator:
    """Turns a recurrence pattern and an anchor instant into candidate dates.

    Two modes are offered:

    - ``generate`` walks forward from the anchor until the pattern terminates
      or a safety cap is reached.
    - ``generate_for_window`` returns the candidates falling inside a query
      window. Both termination kinds are honoured here as well: an
      ``EndsAfter(n)`` pattern counts occurrences from the anchor, including
      the ones that fall before the window, so a window never reveals more
      than the first ``n`` occurrences.

    All candidates keep the anchor's time of day. Monthly patterns clamp the
    target day to short months and keep the clamped day afterwards
    (Jan 31 -> Feb 28 -> Mar 28).
    """

    def __init__(
        self,
        date_arithmetic: Optional[DateArithmetic] = None,
        settings: Optional[EngineSettings] = None,
    ):
        """Initialize RecurrenceGenerator.

        Args:
            date_arithmetic: Calendar primitives; built from ``settings.week_start``
                when omitted
            settings: Engine settings; defaults to ``EngineSettings()``
        """
        self.settings = settings or EngineSettings()
        self.dates = date_arithmetic or DateArithmetic(week_start=self.settings.week_start)

    def generate(
        self,
        anchor: datetime,
        pattern: RecurrencePattern,
        safety_cap: Optional[int] = None,
    ) -> list[datetime]:
        """Generate candidates from ``anchor`` without a query window.

        Args:
            anchor: First instant of the series
            pattern: Recurrence rule
            safety_cap: Upper limit on the number of candidates; defaults to
                ``settings.default_safety_cap``

        Returns:
            At most ``min(pattern count, safety_cap)`` ascending datetimes

        Raises:
            InvalidGenerationRequestError: If ``safety_cap`` is below 1
            UnsupportedFrequencyError: If the pattern frequency is unknown
        """
        cap = self.settings.default_safety_cap if safety_cap is None else safety_cap
        if cap < 1:
            raise InvalidGenerationRequestError(f"safety cap must be at least 1, got {cap}")

        candidates = self._terminate(self._candidates(anchor, pattern), pattern, pattern.end_date)
        result = list(islice(candidates, cap))

        logger.debug(
            "Generated %d %s candidates from %s (cap=%d, termination=%s)",
            len(result),
            pattern.frequency.value,
            anchor.isoformat(),
            cap,
            pattern.termination.kind,
        )
        return result

    def generate_for_window(
        self,
        window_start: datetime,
        window_end: datetime,
        pattern: RecurrencePattern,
        anchor: Optional[datetime] = None,
    ) -> list[datetime]:
        """Generate every candidate inside ``[window_start, window_end]``.

        Args:
            window_start: Inclusive lower bound
            window_end: Inclusive upper bound; the pattern's own end date is used
                instead when it is earlier
            pattern: Recurrence rule
            anchor: Alignment anchor (series start); defaults to ``window_start``

        Raises:
            InvalidWindowError: If ``window_end`` is before ``window_start``
            InvalidGenerationRequestError: If ``settings.max_window_occurrences``
                is set and the window holds more occurrences
            UnsupportedFrequencyError: If the pattern frequency is unknown
        """
        anchor = window_start if anchor is None else anchor
        return self._window(window_start, window_end, pattern, anchor, self._candidates)

    def generate_daily_for_window(
        self,
        window_start: datetime,
        window_end: datetime,
        pattern: RecurrencePattern,
        anchor: Optional[datetime] = None,
    ) -> list[datetime]:
        """Window-bounded generation for a daily pattern."""
        self._require_frequency(pattern, Frequency.DAILY)
        anchor = window_start if anchor is None else anchor
        return self._window(window_start, window_end, pattern, anchor, self._daily)

    def generate_weekly_for_window(
        self,
        window_start: datetime,
        window_end: datetime,
        pattern: RecurrencePattern,
        anchor: Optional[datetime] = None,
    ) -> list[datetime]:
        """Window-bounded generation for a weekly pattern."""
        self._require_frequency(pattern, Frequency.WEEKLY)
        anchor = window_start if anchor is None else anchor
        return self._window(window_start, window_end, pattern, anchor, self._weekly)

    def generate_monthly_for_window(
        self,
        window_start: datetime,
        window_end: datetime,
        pattern: RecurrencePattern,
        anchor: Optional[datetime] = None,
    ) -> list[datetime]:
        """Window-bounded generation for a monthly pattern."""
        self._require_frequency(pattern, Frequency.MONTHLY)
        anchor = window_start if anchor is None else anchor
        return self._window(window_start, window_end, pattern, anchor, self._monthly)

    def _window(
        self,
        window_start: datetime,
        window_end: datetime,
        pattern: RecurrencePattern,
        anchor: datetime,
        candidates_for: Callable[[datetime, RecurrencePattern], Iterator[datetime]],
    ) -> list[datetime]:
        if window_end < window_start:
            raise InvalidWindowError(window_start, window_end)

        candidates = candidates_for(anchor, pattern)

        effective_end = window_end
        if pattern.end_date is not None and pattern.end_date < window_end:
            effective_end = pattern.end_date

        logger.debug(
            "Window generation: frequency=%s interval=%d anchor=%s window=%s..%s effective_end=%s",
            pattern.frequency.value,
            pattern.interval,
            anchor.isoformat(),
            window_start.isoformat(),
            window_end.isoformat(),
            effective_end.isoformat(),
        )

        limit = self.settings.max_window_occurrences
        result: list[datetime] = []
        for candidate in self._terminate(candidates, pattern, effective_end):
            if candidate < window_start:
                continue
            if limit is not None and len(result) >= limit:
                logger.warning(
                    "Window %s..%s exceeds %d occurrences",
                    window_start.isoformat(),
                    window_end.isoformat(),
                    limit,
                )
                raise InvalidGenerationRequestError(
                    f"window yields more than {limit} occurrences; "
                    "narrow the window or raise max_window_occurrences"
                )
            result.append(candidate)

        logger.debug("Window generation produced %d candidates", len(result))
        return result

    @staticmethod
    def _terminate(
        candidates: Iterator[datetime],
        pattern: RecurrencePattern,
        upper_bound: Optional[datetime],
    ) -> Iterator[datetime]:
        """Stop at the occurrence count or at the first candidate past ``upper_bound``."""
        count = pattern.occurrence_count
        for index, candidate in enumerate(candidates):
            if count is not None and index >= count:
                return
            if upper_bound is not None and candidate > upper_bound:
                return
            yield candidate

    def _candidates(self, anchor: datetime, pattern: RecurrencePattern) -> Iterator[datetime]:
        """Open-ended candidate sequence for any supported frequency."""
        if pattern.frequency == Frequency.DAILY:
            return self._daily(anchor, pattern)
        if pattern.frequency == Frequency.WEEKLY:
            return self._weekly(anchor, pattern)
        if pattern.frequency == Frequency.MONTHLY:
            return self._monthly(anchor, pattern)
        raise UnsupportedFrequencyError(pattern.frequency)

    def _daily(self, anchor: datetime, pattern: RecurrencePattern) -> Iterator[datetime]:
        step = 0
        while True:
            yield self.dates.add_days(anchor, step * pattern.interval)
            step += 1

    def _weekly(self, anchor: datetime, pattern: RecurrencePattern) -> Iterator[datetime]:
        first_block = self.dates.start_of_week(anchor)
        offsets = sorted(self.dates.day_offset(day) for day in pattern.days_of_week)

        week_index = 0
        while True:
            block_start = self.dates.add_weeks(first_block, week_index * pattern.interval)
            for offset in offsets:
                candidate = self.dates.add_days(block_start, offset)
                # Days of the anchor's week that precede it are not part of the series.
                if candidate < anchor:
                    continue
                yield candidate
            week_index += 1

    def _monthly(self, anchor: datetime, pattern: RecurrencePattern) -> Iterator[datetime]:
        month_start = anchor.replace(day=1)
        target_day = anchor.day

        while True:
            days = self.dates.days_in_month(month_start.year, month_start.month)
            # Sticky clamp: a short month lowers the target day for good.
            target_day = min(target_day, days)
            yield month_start.replace(day=target_day)
            month_start = self.dates.add_months(month_start, pattern.interval)

    @staticmethod
    def _require_frequency(pattern: RecurrencePattern, expected: Frequency) -> None:
        if pattern.frequency != expected:
            raise InvalidGenerationRequestError(
                f"{expected.value.lower()} generation requested for a "
                f"{getattr(pattern.frequency, 'value', pattern.frequency)} pattern"
            )
