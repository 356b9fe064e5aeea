"""Data models for recurring events, their exceptions and occurrences."""

from datetime import datetime, timedelta
from typing import Annotated, Any, Literal, Optional, Union
import uuid

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from .enums import Frequency, Weekday
from .exceptions import (
    EventTemplateError,
    InvalidOccurrenceExceptionError,
    RecurrencePatternError,
    SameDateRescheduleError,
)

# Recurrence termination


class Unbounded(BaseModel):
    """Recurrence with no end condition."""

    kind: Literal["unbounded"] = "unbounded"

    model_config = ConfigDict(frozen=True)


class EndsOn(BaseModel):
    """Recurrence ending on a fixed instant (inclusive)."""

    kind: Literal["ends_on"] = "ends_on"
    date: datetime = Field(..., description="Last instant an occurrence may start at")

    model_config = ConfigDict(frozen=True)


class EndsAfter(BaseModel):
    """Recurrence ending after a fixed number of occurrences."""

    kind: Literal["ends_after"] = "ends_after"
    count: int = Field(..., description="Total number of occurrences")

    model_config = ConfigDict(frozen=True)

    @field_validator("count")
    @classmethod
    def _check_count(cls, value: int) -> int:
        if value < 1:
            raise RecurrencePatternError("occurrence count must be at least 1")
        return value


Termination = Annotated[Union[Unbounded, EndsOn, EndsAfter], Field(discriminator="kind")]


def termination_from_fields(
    end_date: Optional[datetime] = None, count: Optional[int] = None
) -> Union[Unbounded, EndsOn, EndsAfter]:
    """Build a termination from the flat end date / count pair used in storage rows."""
    if end_date is not None and count is not None:
        raise RecurrencePatternError("cannot specify both end date and occurrence count")
    if end_date is not None:
        return EndsOn(date=end_date)
    if count is not None:
        return EndsAfter(count=count)
    return Unbounded()


class RecurrencePattern(BaseModel):
    """Immutable, self-validating recurrence rule.

    ``days_of_week`` is stored sorted, so two patterns built from the same
    days in a different order compare equal. Replace the whole pattern when a
    rule is edited; use ``==`` to decide whether it changed.
    """

    frequency: Frequency
    interval: int = 1
    days_of_week: tuple[Weekday, ...] = ()
    termination: Termination = Field(default_factory=Unbounded)

    model_config = ConfigDict(frozen=True)

    @field_validator("days_of_week")
    @classmethod
    def _sort_days(cls, value: tuple[Weekday, ...]) -> tuple[Weekday, ...]:
        return tuple(sorted(value))

    @model_validator(mode="after")
    def _check_invariants(self) -> "RecurrencePattern":
        if self.interval < 1:
            raise RecurrencePatternError("interval must be at least 1")

        if len(set(self.days_of_week)) != len(self.days_of_week):
            raise RecurrencePatternError("duplicate days of week are not allowed")

        if self.frequency == Frequency.WEEKLY and not self.days_of_week:
            raise RecurrencePatternError(
                "weekly recurrence must specify at least one day of week"
            )

        if self.frequency != Frequency.WEEKLY and self.days_of_week:
            raise RecurrencePatternError(
                "days of week can only be specified for weekly recurrence"
            )

        return self

    @classmethod
    def daily(
        cls,
        interval: int = 1,
        termination: Optional[Union[Unbounded, EndsOn, EndsAfter]] = None,
        anchor: Optional[datetime] = None,
    ) -> "RecurrencePattern":
        """Every ``interval`` days."""
        pattern = cls(
            frequency=Frequency.DAILY,
            interval=interval,
            termination=termination or Unbounded(),
        )
        pattern.check_anchor(anchor)
        return pattern

    @classmethod
    def weekly(
        cls,
        days_of_week: Any,
        interval: int = 1,
        termination: Optional[Union[Unbounded, EndsOn, EndsAfter]] = None,
        anchor: Optional[datetime] = None,
    ) -> "RecurrencePattern":
        """On the given weekdays of every ``interval``-th week."""
        pattern = cls(
            frequency=Frequency.WEEKLY,
            interval=interval,
            days_of_week=tuple(days_of_week),
            termination=termination or Unbounded(),
        )
        pattern.check_anchor(anchor)
        return pattern

    @classmethod
    def monthly(
        cls,
        interval: int = 1,
        termination: Optional[Union[Unbounded, EndsOn, EndsAfter]] = None,
        anchor: Optional[datetime] = None,
    ) -> "RecurrencePattern":
        """On the anchor's day of month, every ``interval`` months."""
        pattern = cls(
            frequency=Frequency.MONTHLY,
            interval=interval,
            termination=termination or Unbounded(),
        )
        pattern.check_anchor(anchor)
        return pattern

    @classmethod
    def from_fields(
        cls,
        frequency: Union[Frequency, str],
        interval: int = 1,
        days_of_week: Any = (),
        end_date: Optional[datetime] = None,
        occurrences: Optional[int] = None,
        anchor: Optional[datetime] = None,
    ) -> "RecurrencePattern":
        """Build a pattern from flat storage columns."""
        pattern = cls(
            frequency=frequency,
            interval=interval,
            days_of_week=tuple(days_of_week or ()),
            termination=termination_from_fields(end_date, occurrences),
        )
        pattern.check_anchor(anchor)
        return pattern

    def check_anchor(self, anchor: Optional[datetime]) -> None:
        """Reject an end date that falls before the first occurrence."""
        end_date = self.end_date
        if anchor is not None and end_date is not None and end_date < anchor:
            raise RecurrencePatternError("end date must not be before the first occurrence")

    @property
    def end_date(self) -> Optional[datetime]:
        return self.termination.date if isinstance(self.termination, EndsOn) else None

    @property
    def occurrence_count(self) -> Optional[int]:
        return self.termination.count if isinstance(self.termination, EndsAfter) else None

    @property
    def is_open_ended(self) -> bool:
        return isinstance(self.termination, Unbounded)


class EventTemplate(BaseModel):
    """Defining instance of a (possibly recurring) event."""

    id: str = Field(..., description="Template ID")
    title: str = Field(..., description="Event title")
    description: Optional[str] = Field(default=None, description="Event description")
    location: Optional[str] = Field(default=None, description="Event location")
    organizer_ids: tuple[str, ...] = Field(default=(), description="Organizer IDs")
    attendee_ids: tuple[str, ...] = Field(default=(), description="Attendee IDs")

    start: datetime = Field(..., description="Anchor start")
    end: datetime = Field(..., description="Anchor end")
    recurrence: Optional[RecurrencePattern] = Field(default=None, description="Recurrence rule")

    created_at: Optional[datetime] = Field(default=None, description="Creation time")
    updated_at: Optional[datetime] = Field(default=None, description="Last modification time")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_invariants(self) -> "EventTemplate":
        if self.end <= self.start:
            raise EventTemplateError("event end must be after event start")
        if self.recurrence is not None:
            end_date = self.recurrence.end_date
            if end_date is not None and end_date < self.start:
                raise EventTemplateError("recurrence end date must not be before event start")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None


# Occurrence exceptions


class OccurrenceChanges(BaseModel):
    """Field-level overrides for a single occurrence. Unset fields keep the template value."""

    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    organizer_ids: Optional[tuple[str, ...]] = None
    attendee_ids: Optional[tuple[str, ...]] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_times(self) -> "OccurrenceChanges":
        if self.start is not None and self.end is not None and self.end <= self.start:
            raise InvalidOccurrenceExceptionError("modified end must be after modified start")
        return self

    def present(self) -> dict[str, Any]:
        """Only the fields that were actually overridden."""
        return self.model_dump(exclude_none=True)

    @property
    def is_empty(self) -> bool:
        return not self.present()


class _OccurrenceExceptionBase(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Exception ID")
    template_id: str = Field(..., description="Template this exception belongs to")
    original_date: datetime = Field(..., description="Occurrence slot being overridden")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation time")

    model_config = ConfigDict(frozen=True)

    def applies_to(self, occurrence_date: datetime) -> bool:
        """Calendar-day match against the original occurrence date."""
        return self.original_date.date() == occurrence_date.date()


class SkipOccurrence(_OccurrenceExceptionBase):
    """Cancel a single occurrence."""

    kind: Literal["skip"] = "skip"


class RescheduleOccurrence(_OccurrenceExceptionBase):
    """Move a single occurrence to a new start instant."""

    kind: Literal["reschedule"] = "reschedule"
    new_start: datetime = Field(..., description="New start instant")

    @model_validator(mode="after")
    def _check_new_start(self) -> "RescheduleOccurrence":
        if self.new_start == self.original_date:
            raise SameDateRescheduleError()
        return self


class ModifyOccurrence(_OccurrenceExceptionBase):
    """Override some fields of a single occurrence."""

    kind: Literal["modify"] = "modify"
    changes: OccurrenceChanges = Field(..., description="Overridden fields")

    @model_validator(mode="after")
    def _check_changes(self) -> "ModifyOccurrence":
        if self.changes.is_empty:
            raise InvalidOccurrenceExceptionError("modification must change at least one field")
        return self


AnyOccurrenceException = Union[SkipOccurrence, RescheduleOccurrence, ModifyOccurrence]

OccurrenceException = Annotated[AnyOccurrenceException, Field(discriminator="kind")]

_occurrence_exception_adapter: TypeAdapter = TypeAdapter(OccurrenceException)


def parse_occurrence_exception(data: Any) -> AnyOccurrenceException:
    """Rebuild the right exception variant from a mapping (e.g. a stored JSON row)."""
    return _occurrence_exception_adapter.validate_python(data)


class Occurrence(BaseModel):
    """One materialized instance of an event template."""

    id: str = Field(..., description="Occurrence ID")
    template_id: str = Field(..., description="Source template ID")
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    organizer_ids: tuple[str, ...] = ()
    attendee_ids: tuple[str, ...] = ()

    start: datetime
    end: datetime
    original_start: Optional[datetime] = Field(
        default=None, description="Slot the occurrence was generated for"
    )

    is_recurring_instance: bool = False
    is_rescheduled: bool = False
    is_modified: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @classmethod
    def from_template(
        cls,
        template: EventTemplate,
        start: Optional[datetime] = None,
        original_start: Optional[datetime] = None,
        **flags: bool,
    ) -> "Occurrence":
        """Copy the template payload onto a slot, keeping the template duration."""
        start = template.start if start is None else start
        slot = original_start or start
        return cls(
            id=f"{template.id}_{slot.strftime('%Y%m%dT%H%M%S')}",
            template_id=template.id,
            title=template.title,
            description=template.description,
            location=template.location,
            organizer_ids=template.organizer_ids,
            attendee_ids=template.attendee_ids,
            start=start,
            end=start + template.duration,
            original_start=original_start,
            is_recurring_instance=template.is_recurring,
            **flags,
        )
