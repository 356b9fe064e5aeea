"""Occurrence materialization for event templates over a time window."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime
import logging
from typing import Optional

from .exceptions import InvalidWindowError
from .generator import RecurrenceGenerator
from .models import AnyOccurrenceException, EventTemplate, Occurrence
from .overlay import ExceptionOverlay
from .settings import EngineSettings

logger = logging.getLogger(__name__)


class OccurrenceMaterializer:
    """Expands templates into the occurrences visible in a window.

    The materializer holds no per-call state, so one instance can serve
    concurrent callers.
    """

    def __init__(
        self,
        generator: Optional[RecurrenceGenerator] = None,
        settings: Optional[EngineSettings] = None,
    ):
        """Initialize OccurrenceMaterializer.

        Args:
            generator: Candidate generator; built from ``settings`` when omitted
            settings: Engine settings; defaults to the generator's settings
        """
        if generator is None:
            generator = RecurrenceGenerator(settings=settings)
        self.generator = generator
        self.settings = settings or generator.settings

    def materialize_for_window(
        self,
        template: EventTemplate,
        exceptions: Iterable[AnyOccurrenceException],
        window_start: datetime,
        window_end: datetime,
    ) -> list[Occurrence]:
        """Materialize ``template`` inside ``[window_start, window_end]``.

        Args:
            template: Event template, recurring or not
            exceptions: Occurrence exceptions recorded for the template
            window_start: Inclusive window start
            window_end: Inclusive window end

        Returns:
            Occurrences sorted by start

        Raises:
            InvalidWindowError: If ``window_end`` is before ``window_start``
        """
        if window_end < window_start:
            raise InvalidWindowError(window_start, window_end)

        if template.recurrence is None:
            if window_start <= template.start <= window_end:
                return [Occurrence.from_template(template)]
            return []

        effective_start = max(template.start, window_start)
        if effective_start > window_end:
            return []

        candidates = self.generator.generate_for_window(
            effective_start,
            window_end,
            template.recurrence,
            anchor=template.start,
        )

        overlay = ExceptionOverlay(
            self._exceptions_for(template, exceptions),
            date_arithmetic=self.generator.dates,
        )
        occurrences = overlay.apply(template, candidates)

        logger.debug(
            "Materialized %d occurrences of template %s for %s..%s",
            len(occurrences),
            template.id,
            window_start.isoformat(),
            window_end.isoformat(),
        )
        return occurrences

    def materialize_calendar(
        self,
        templates: Iterable[EventTemplate],
        exceptions: Iterable[AnyOccurrenceException],
        window_start: datetime,
        window_end: datetime,
    ) -> list[Occurrence]:
        """Materialize several templates into one list sorted by start.

        ``exceptions`` may mix exceptions of all templates; they are grouped by
        ``template_id`` before each template is expanded.
        """
        by_template: dict[str, list[AnyOccurrenceException]] = defaultdict(list)
        for exception in exceptions:
            by_template[exception.template_id].append(exception)

        occurrences: list[Occurrence] = []
        for template in templates:
            occurrences.extend(
                self.materialize_for_window(
                    template, by_template.get(template.id, []), window_start, window_end
                )
            )

        occurrences.sort(key=lambda occurrence: (occurrence.start, occurrence.template_id))
        return occurrences

    @staticmethod
    def _exceptions_for(
        template: EventTemplate, exceptions: Iterable[AnyOccurrenceException]
    ) -> list[AnyOccurrenceException]:
        matching = []
        for exception in exceptions:
            if exception.template_id != template.id:
                logger.debug(
                    "Ignoring exception %s for template %s while materializing %s",
                    exception.id,
                    exception.template_id,
                    template.id,
                )
                continue
            matching.append(exception)
        return matching


def materialize_for_window(
    template: EventTemplate,
    exceptions: Iterable[AnyOccurrenceException],
    window_start: datetime,
    window_end: datetime,
    settings: Optional[EngineSettings] = None,
) -> list[Occurrence]:
    """Materialize one template with a default ``OccurrenceMaterializer``."""
    return OccurrenceMaterializer(settings=settings).materialize_for_window(
        template, exceptions, window_start, window_end
    )
