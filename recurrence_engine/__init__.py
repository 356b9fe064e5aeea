"""recurrence_engine - recurrence rules and occurrence materialization.

Expands recurring event templates (daily, weekly, monthly rules with an end
date or an occurrence count) into concrete occurrences inside a time window,
then applies per-occurrence skip / reschedule / modify exceptions.
"""

__version__ = "1.0.0"

from .date_arithmetic import DateArithmetic
from .enums import Frequency, Weekday
from .exceptions import (
    EventTemplateError,
    InvalidGenerationRequestError,
    InvalidOccurrenceExceptionError,
    InvalidWindowError,
    OccurrenceExceptionError,
    OccurrenceExceptionExistsError,
    RecurrenceEngineError,
    RecurrenceInvariantError,
    RecurrencePatternError,
    RecurrenceValidationError,
    RRuleParseError,
    SameDateRescheduleError,
    TemplateNotRecurringError,
    UnsupportedFrequencyError,
)
from .generator import RecurrenceGenerator
from .logging_config import configure_logging, configure_logging_from_settings
from .materializer import OccurrenceMaterializer, materialize_for_window
from .models import (
    AnyOccurrenceException,
    EndsAfter,
    EndsOn,
    EventTemplate,
    ModifyOccurrence,
    Occurrence,
    OccurrenceChanges,
    OccurrenceException,
    RecurrencePattern,
    RescheduleOccurrence,
    SkipOccurrence,
    Unbounded,
    parse_occurrence_exception,
    termination_from_fields,
)
from .occurrence_edits import (
    exceptions_invalidated_by,
    find_exception,
    modify_occurrence,
    recurrence_changed,
    reschedule_occurrence,
    skip_occurrence,
)
from .overlay import ExceptionOverlay
from .rrule_codec import pattern_from_rrule, pattern_to_rrule
from .settings import EngineSettings, load_settings

__all__ = [
    "AnyOccurrenceException",
    "DateArithmetic",
    "EndsAfter",
    "EndsOn",
    "EngineSettings",
    "EventTemplate",
    "EventTemplateError",
    "ExceptionOverlay",
    "Frequency",
    "InvalidGenerationRequestError",
    "InvalidOccurrenceExceptionError",
    "InvalidWindowError",
    "ModifyOccurrence",
    "Occurrence",
    "OccurrenceChanges",
    "OccurrenceException",
    "OccurrenceExceptionError",
    "OccurrenceExceptionExistsError",
    "OccurrenceMaterializer",
    "RRuleParseError",
    "RecurrenceEngineError",
    "RecurrenceGenerator",
    "RecurrenceInvariantError",
    "RecurrencePattern",
    "RecurrencePatternError",
    "RecurrenceValidationError",
    "RescheduleOccurrence",
    "SameDateRescheduleError",
    "SkipOccurrence",
    "TemplateNotRecurringError",
    "Unbounded",
    "UnsupportedFrequencyError",
    "Weekday",
    "configure_logging",
    "configure_logging_from_settings",
    "exceptions_invalidated_by",
    "find_exception",
    "load_settings",
    "materialize_for_window",
    "modify_occurrence",
    "parse_occurrence_exception",
    "pattern_from_rrule",
    "pattern_to_rrule",
    "recurrence_changed",
    "reschedule_occurrence",
    "skip_occurrence",
    "termination_from_fields",
]
