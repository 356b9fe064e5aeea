"""Exception hierarchy for the recurrence engine.

Two families are kept apart:

- ``RecurrenceValidationError`` and its subclasses are caller-facing. They are
  raised while building patterns, templates and occurrence exceptions and name
  the rule that was broken, so they can be shown to an end user.
- ``RecurrenceInvariantError`` and its subclasses signal a defect in the
  caller or in construction-time validation (an unknown frequency reaching
  the generator, an inverted window). They should not be translated into
  user-facing messages.

None of these derive from ``ValueError``: pydantic would otherwise wrap them
into its own ``ValidationError`` when they are raised inside model validators.
"""

from datetime import datetime
from typing import Optional


class RecurrenceEngineError(Exception):
    """Base exception for all recurrence engine errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RecurrenceValidationError(RecurrenceEngineError):
    """Invalid input supplied by the caller."""


class RecurrencePatternError(RecurrenceValidationError):
    """A recurrence pattern violates one of its invariants."""


class EventTemplateError(RecurrenceValidationError):
    """An event template violates one of its invariants."""


class OccurrenceExceptionError(RecurrenceValidationError):
    """An occurrence exception is invalid or cannot be created."""


class SameDateRescheduleError(OccurrenceExceptionError):
    """Reschedule target equals the original occurrence date."""

    def __init__(self) -> None:
        super().__init__("cannot reschedule an occurrence to the same date")


class InvalidOccurrenceExceptionError(OccurrenceExceptionError):
    """Occurrence exception payload is malformed."""


class TemplateNotRecurringError(OccurrenceExceptionError):
    """Exception requested for a template without a recurrence pattern."""

    def __init__(self, template_id: str):
        super().__init__(f"event template {template_id} is not recurring")
        self.template_id = template_id


class OccurrenceExceptionExistsError(OccurrenceExceptionError):
    """An exception already exists for that template and calendar day."""

    def __init__(self, template_id: str, original_date: datetime):
        super().__init__(
            f"exception already exists for template {template_id} "
            f"on {original_date.date().isoformat()}"
        )
        self.template_id = template_id
        self.original_date = original_date


class RRuleParseError(RecurrenceValidationError):
    """An RRULE string cannot be turned into a recurrence pattern."""

    def __init__(self, message: str, rrule_string: Optional[str] = None):
        super().__init__(message)
        self.rrule_string = rrule_string


class RecurrenceInvariantError(RecurrenceEngineError):
    """Programming error: an invariant was violated past validation."""


class UnsupportedFrequencyError(RecurrenceInvariantError):
    """A frequency the generator does not know about reached it."""

    def __init__(self, frequency: object):
        super().__init__(f"unknown recurrence frequency: {frequency!r}")
        self.frequency = frequency


class InvalidWindowError(RecurrenceInvariantError):
    """Query window ends before it starts."""

    def __init__(self, window_start: datetime, window_end: datetime):
        super().__init__(
            f"window end {window_end.isoformat()} is before window start "
            f"{window_start.isoformat()}"
        )
        self.window_start = window_start
        self.window_end = window_end


class InvalidGenerationRequestError(RecurrenceInvariantError):
    """Generation was requested with nonsensical limits."""
