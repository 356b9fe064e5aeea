"""Per-occurrence exception overlay (skip / reschedule / modify)."""

from collections.abc import Iterable
from datetime import datetime
import logging
from typing import Optional

from .date_arithmetic import DateArithmetic
from .models import (
    AnyOccurrenceException,
    EventTemplate,
    ModifyOccurrence,
    Occurrence,
    RescheduleOccurrence,
    SkipOccurrence,
)

logger = logging.getLogger(__name__)


class ExceptionOverlay:
    """Applies occurrence exceptions to generated candidate dates.

    Exceptions are matched to candidates by calendar day of their
    ``original_date``; the time of day is ignored. If two exceptions share a
    day the later one in the input wins.
    """

    def __init__(
        self,
        exceptions: Iterable[AnyOccurrenceException],
        date_arithmetic: Optional[DateArithmetic] = None,
    ):
        self.dates = date_arithmetic or DateArithmetic()
        self._by_day: dict[str, AnyOccurrenceException] = {}

        for exception in exceptions:
            key = self.dates.date_key(exception.original_date)
            if key in self._by_day:
                logger.warning(
                    "Duplicate occurrence exception for template %s on %s; keeping %s",
                    exception.template_id,
                    key,
                    exception.id,
                )
            self._by_day[key] = exception

    def __len__(self) -> int:
        return len(self._by_day)

    def lookup(self, occurrence_date: datetime) -> Optional[AnyOccurrenceException]:
        """Exception registered for the calendar day of ``occurrence_date``, if any."""
        return self._by_day.get(self.dates.date_key(occurrence_date))

    def apply(self, template: EventTemplate, candidates: Iterable[datetime]) -> list[Occurrence]:
        """Build occurrences for ``candidates`` with exceptions applied.

        Args:
            template: Template whose payload and duration are copied
            candidates: Generated occurrence start instants

        Returns:
            Occurrences sorted by start, rescheduled ones merged in
        """
        result: list[Occurrence] = []
        rescheduled: dict[datetime, Occurrence] = {}
        skipped = 0

        for candidate in candidates:
            exception = self.lookup(candidate)

            if isinstance(exception, SkipOccurrence):
                skipped += 1
                continue

            if isinstance(exception, RescheduleOccurrence):
                rescheduled[exception.new_start] = Occurrence.from_template(
                    template,
                    exception.new_start,
                    original_start=candidate,
                    is_rescheduled=True,
                )
                continue

            occurrence = Occurrence.from_template(template, candidate, original_start=candidate)
            if isinstance(exception, ModifyOccurrence):
                occurrence = self._modify(occurrence, exception)
            result.append(occurrence)

        result.extend(rescheduled.values())
        result.sort(key=lambda occurrence: occurrence.start)

        logger.debug(
            "Overlay for template %s: %d occurrences, %d skipped, %d rescheduled",
            template.id,
            len(result),
            skipped,
            len(rescheduled),
        )
        return result

    @staticmethod
    def _modify(occurrence: Occurrence, exception: ModifyOccurrence) -> Occurrence:
        changes = exception.changes.present()
        # A moved start without an explicit end keeps the occurrence duration.
        if "start" in changes and "end" not in changes:
            changes["end"] = changes["start"] + occurrence.duration
        changes["is_modified"] = True
        return occurrence.model_copy(update=changes)
