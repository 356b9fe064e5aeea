"""Creation of occurrence exceptions and invalidation on recurrence edits.

Storage is up to the caller: these helpers take the exceptions already
recorded for a template and return new exception objects (or the ones that
must be deleted), leaving persistence to the surrounding application.
"""

from collections.abc import Iterable
from datetime import datetime
import logging
from typing import Optional

from .exceptions import OccurrenceExceptionExistsError, TemplateNotRecurringError
from .models import (
    AnyOccurrenceException,
    EventTemplate,
    ModifyOccurrence,
    OccurrenceChanges,
    RescheduleOccurrence,
    SkipOccurrence,
)

logger = logging.getLogger(__name__)


def _check_can_add_exception(
    template: EventTemplate,
    original_date: datetime,
    existing: Iterable[AnyOccurrenceException],
) -> None:
    if template.recurrence is None:
        raise TemplateNotRecurringError(template.id)

    if find_exception(existing, template.id, original_date) is not None:
        raise OccurrenceExceptionExistsError(template.id, original_date)


def skip_occurrence(
    template: EventTemplate,
    original_date: datetime,
    existing: Iterable[AnyOccurrenceException] = (),
) -> SkipOccurrence:
    """Cancel the occurrence of ``template`` on ``original_date``.

    Raises:
        TemplateNotRecurringError: If the template has no recurrence pattern
        OccurrenceExceptionExistsError: If that day already has an exception
    """
    _check_can_add_exception(template, original_date, existing)
    logger.info("Skipping occurrence of %s on %s", template.id, original_date.isoformat())
    return SkipOccurrence(template_id=template.id, original_date=original_date)


def reschedule_occurrence(
    template: EventTemplate,
    original_date: datetime,
    new_start: datetime,
    existing: Iterable[AnyOccurrenceException] = (),
) -> RescheduleOccurrence:
    """Move the occurrence of ``template`` on ``original_date`` to ``new_start``.

    Raises:
        TemplateNotRecurringError: If the template has no recurrence pattern
        OccurrenceExceptionExistsError: If that day already has an exception
        SameDateRescheduleError: If ``new_start`` equals ``original_date``
    """
    _check_can_add_exception(template, original_date, existing)
    logger.info(
        "Rescheduling occurrence of %s from %s to %s",
        template.id,
        original_date.isoformat(),
        new_start.isoformat(),
    )
    return RescheduleOccurrence(
        template_id=template.id, original_date=original_date, new_start=new_start
    )


def modify_occurrence(
    template: EventTemplate,
    original_date: datetime,
    changes: OccurrenceChanges,
    existing: Iterable[AnyOccurrenceException] = (),
) -> ModifyOccurrence:
    """Override some fields of the occurrence of ``template`` on ``original_date``.

    Raises:
        TemplateNotRecurringError: If the template has no recurrence pattern
        OccurrenceExceptionExistsError: If that day already has an exception
        InvalidOccurrenceExceptionError: If ``changes`` overrides nothing
    """
    _check_can_add_exception(template, original_date, existing)
    logger.info(
        "Modifying occurrence of %s on %s: %s",
        template.id,
        original_date.isoformat(),
        sorted(changes.present()),
    )
    return ModifyOccurrence(template_id=template.id, original_date=original_date, changes=changes)


def recurrence_changed(previous: EventTemplate, updated: EventTemplate) -> bool:
    """Whether an edit replaced, added or removed the recurrence rule."""
    return previous.recurrence != updated.recurrence


def exceptions_invalidated_by(
    previous: EventTemplate,
    updated: EventTemplate,
    exceptions: Iterable[AnyOccurrenceException],
) -> list[AnyOccurrenceException]:
    """Exceptions the caller must delete after editing ``previous`` into ``updated``.

    Exceptions are anchored to the slots of the old rule, so all of the
    template's exceptions go once the rule changes; none go otherwise.
    """
    if not recurrence_changed(previous, updated):
        return []

    stale = [exception for exception in exceptions if exception.template_id == previous.id]
    if stale:
        logger.info(
            "Recurrence of template %s changed; %d exceptions invalidated",
            previous.id,
            len(stale),
        )
    return stale


def find_exception(
    exceptions: Iterable[AnyOccurrenceException],
    template_id: str,
    occurrence_date: datetime,
) -> Optional[AnyOccurrenceException]:
    """Exception recorded for ``template_id`` on the calendar day of ``occurrence_date``."""
    for exception in exceptions:
        if exception.template_id == template_id and exception.applies_to(occurrence_date):
            return exception
    return None
