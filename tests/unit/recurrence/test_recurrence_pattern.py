"""Unit tests for RecurrencePattern and the other recurrence models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from recurrence_engine.enums import Frequency, Weekday
from recurrence_engine.exceptions import (
    EventTemplateError,
    InvalidOccurrenceExceptionError,
    RecurrencePatternError,
    SameDateRescheduleError,
)
from recurrence_engine.models import (
    EndsAfter,
    EndsOn,
    EventTemplate,
    ModifyOccurrence,
    Occurrence,
    OccurrenceChanges,
    RecurrencePattern,
    RescheduleOccurrence,
    SkipOccurrence,
    Unbounded,
    parse_occurrence_exception,
    termination_from_fields,
)

pytestmark = pytest.mark.unit


class TestRecurrencePatternConstruction:
    """Tests for the pattern factories and their validation."""

    def test_daily_defaults(self):
        """Daily pattern defaults to interval 1, no days, unbounded."""
        pattern = RecurrencePattern.daily()

        assert pattern.frequency == Frequency.DAILY
        assert pattern.interval == 1
        assert pattern.days_of_week == ()
        assert pattern.termination == Unbounded()
        assert pattern.is_open_ended is True

    def test_weekly_with_days(self):
        """Weekly pattern stores its days sorted."""
        pattern = RecurrencePattern.weekly([Weekday.FRIDAY, Weekday.MONDAY], interval=2)

        assert pattern.frequency == Frequency.WEEKLY
        assert pattern.interval == 2
        assert pattern.days_of_week == (Weekday.MONDAY, Weekday.FRIDAY)

    def test_monthly_with_count(self):
        """Monthly pattern exposes its occurrence count."""
        pattern = RecurrencePattern.monthly(3, EndsAfter(count=5))

        assert pattern.occurrence_count == 5
        assert pattern.end_date is None
        assert pattern.is_open_ended is False

    def test_end_date_property(self):
        """EndsOn termination is exposed through end_date."""
        end = datetime(2025, 6, 30)
        pattern = RecurrencePattern.daily(termination=EndsOn(date=end))

        assert pattern.end_date == end
        assert pattern.occurrence_count is None

    def test_interval_below_one_rejected(self):
        """Interval 0 fails with a descriptive message."""
        with pytest.raises(RecurrencePatternError, match="interval must be at least 1"):
            RecurrencePattern.daily(0)

    def test_count_below_one_rejected(self):
        """EndsAfter(0) fails validation."""
        with pytest.raises(RecurrencePatternError, match="occurrence count must be at least 1"):
            RecurrencePattern.daily(1, EndsAfter(count=0))

    def test_weekly_without_days_rejected(self):
        """Weekly recurrence needs at least one day."""
        with pytest.raises(RecurrencePatternError, match="at least one day of week"):
            RecurrencePattern.weekly([])

    def test_days_on_non_weekly_rejected(self):
        """Days of week are only allowed on weekly patterns."""
        with pytest.raises(RecurrencePatternError, match="only be specified for weekly"):
            RecurrencePattern(frequency=Frequency.MONTHLY, days_of_week=(Weekday.MONDAY,))

    def test_duplicate_days_rejected(self):
        """Duplicated weekdays are rejected."""
        with pytest.raises(RecurrencePatternError, match="duplicate days of week"):
            RecurrencePattern.weekly([Weekday.MONDAY, Weekday.MONDAY])

    def test_both_end_date_and_count_rejected(self):
        """A flat row with both end date and count is invalid."""
        with pytest.raises(RecurrencePatternError, match="both end date and occurrence count"):
            RecurrencePattern.from_fields(
                Frequency.DAILY, end_date=datetime(2025, 2, 1), occurrences=3
            )

    def test_end_date_before_anchor_rejected(self):
        """An end date before the anchor is rejected when the anchor is known."""
        with pytest.raises(RecurrencePatternError, match="end date must not be before"):
            RecurrencePattern.daily(
                termination=EndsOn(date=datetime(2024, 12, 31)),
                anchor=datetime(2025, 1, 1),
            )

    def test_from_fields_builds_matching_termination(self):
        """Flat storage columns map onto the right termination variant."""
        pattern = RecurrencePattern.from_fields("WEEKLY", 1, [3, 1], occurrences=4)

        assert pattern == RecurrencePattern.weekly(
            [Weekday.MONDAY, Weekday.WEDNESDAY], 1, EndsAfter(count=4)
        )

    def test_termination_from_fields(self):
        """Each flat combination maps onto one termination kind."""
        assert termination_from_fields() == Unbounded()
        assert termination_from_fields(count=2) == EndsAfter(count=2)
        assert termination_from_fields(end_date=datetime(2025, 1, 1)) == EndsOn(
            date=datetime(2025, 1, 1)
        )

    def test_field_type_errors_stay_pydantic(self):
        """Malformed field types raise pydantic's ValidationError."""
        with pytest.raises(ValidationError):
            RecurrencePattern(frequency="YEARLY")

    def test_pattern_is_frozen(self):
        """Patterns are replaced, never mutated."""
        pattern = RecurrencePattern.daily()

        with pytest.raises(ValidationError):
            pattern.interval = 2

    def test_large_values_accepted(self):
        """Large intervals and counts are valid."""
        pattern = RecurrencePattern.weekly(list(Weekday), 52, EndsAfter(count=10_000))

        assert len(pattern.days_of_week) == 7
        assert pattern.occurrence_count == 10_000


class TestRecurrencePatternEquality:
    """Tests for structural equality used to detect rule edits."""

    def test_identical_patterns_equal(self):
        """Same fields compare equal."""
        assert RecurrencePattern.daily(2) == RecurrencePattern.daily(2)

    def test_day_order_ignored(self):
        """Days given in a different order still compare equal."""
        first = RecurrencePattern.weekly([Weekday.MONDAY, Weekday.WEDNESDAY, Weekday.FRIDAY])
        second = RecurrencePattern.weekly([Weekday.FRIDAY, Weekday.MONDAY, Weekday.WEDNESDAY])

        assert first == second
        assert hash(first) == hash(second)

    @pytest.mark.parametrize(
        "other",
        [
            RecurrencePattern.monthly(1),
            RecurrencePattern.daily(2),
            RecurrencePattern.daily(1, EndsAfter(count=3)),
            RecurrencePattern.daily(1, EndsOn(date=datetime(2025, 3, 1))),
        ],
    )
    def test_differences_detected(self, other):
        """Frequency, interval and termination all participate in equality."""
        assert RecurrencePattern.daily(1) != other

    def test_end_dates_compared_by_value(self):
        """End dates compare by timestamp, counts by value."""
        first = RecurrencePattern.daily(1, EndsOn(date=datetime(2025, 3, 1, 12, 0)))
        second = RecurrencePattern.daily(1, EndsOn(date=datetime(2025, 3, 1, 12, 0)))
        later = RecurrencePattern.daily(1, EndsOn(date=datetime(2025, 3, 1, 12, 1)))

        assert first == second
        assert first != later
        assert RecurrencePattern.daily(1, EndsAfter(count=3)) != RecurrencePattern.daily(
            1, EndsAfter(count=4)
        )

    def test_json_round_trip_keeps_termination_variant(self):
        """Serialized patterns come back with the same termination kind."""
        pattern = RecurrencePattern.weekly(
            [Weekday.TUESDAY, Weekday.THURSDAY],
            2,
            EndsOn(date=datetime(2025, 8, 14, 18, 0, tzinfo=timezone.utc)),
        )

        data = pattern.model_dump(mode="json")
        restored = RecurrencePattern.model_validate(data)

        assert data["termination"]["kind"] == "ends_on"
        assert restored == pattern
        assert isinstance(restored.termination, EndsOn)


class TestEventTemplate:
    """Tests for EventTemplate validation."""

    def test_duration(self, daily_template):
        """Duration is end minus start."""
        assert daily_template.duration == timedelta(minutes=90)
        assert daily_template.is_recurring is True

    def test_end_before_start_rejected(self):
        """Zero or negative duration is invalid."""
        with pytest.raises(EventTemplateError, match="end must be after event start"):
            EventTemplate(
                id="t",
                title="Broken",
                start=datetime(2025, 1, 1, 10, 0),
                end=datetime(2025, 1, 1, 10, 0),
            )

    def test_recurrence_ending_before_start_rejected(self):
        """A recurrence end date before the first occurrence is invalid."""
        with pytest.raises(EventTemplateError, match="recurrence end date"):
            EventTemplate(
                id="t",
                title="Broken",
                start=datetime(2025, 1, 10, 10, 0),
                end=datetime(2025, 1, 10, 11, 0),
                recurrence=RecurrencePattern.daily(1, EndsOn(date=datetime(2025, 1, 5))),
            )


class TestOccurrenceExceptions:
    """Tests for the occurrence exception variants."""

    def test_skip_has_unique_ids(self):
        """Each exception gets its own id."""
        first = SkipOccurrence(template_id="t", original_date=datetime(2025, 1, 3, 9, 0))
        second = SkipOccurrence(template_id="t", original_date=datetime(2025, 1, 3, 9, 0))

        assert first.kind == "skip"
        assert first.id != second.id

    def test_applies_to_matches_calendar_day(self):
        """Matching ignores the time of day."""
        exception = SkipOccurrence(template_id="t", original_date=datetime(2025, 1, 3, 0, 0))

        assert exception.applies_to(datetime(2025, 1, 3, 9, 0)) is True
        assert exception.applies_to(datetime(2025, 1, 3, 23, 59)) is True
        assert exception.applies_to(datetime(2025, 1, 4, 9, 0)) is False

    def test_reschedule_to_same_instant_rejected(self):
        """Rescheduling onto the original instant is refused."""
        with pytest.raises(SameDateRescheduleError):
            RescheduleOccurrence(
                template_id="t",
                original_date=datetime(2025, 1, 3, 9, 0),
                new_start=datetime(2025, 1, 3, 9, 0),
            )

    def test_reschedule_within_same_day_allowed(self):
        """Moving to another time on the same day is a valid reschedule."""
        exception = RescheduleOccurrence(
            template_id="t",
            original_date=datetime(2025, 1, 3, 9, 0),
            new_start=datetime(2025, 1, 3, 14, 0),
        )

        assert exception.new_start.hour == 14

    def test_empty_modification_rejected(self):
        """A modification must change something."""
        with pytest.raises(InvalidOccurrenceExceptionError, match="at least one field"):
            ModifyOccurrence(
                template_id="t",
                original_date=datetime(2025, 1, 3, 9, 0),
                changes=OccurrenceChanges(),
            )

    def test_modified_times_must_be_ordered(self):
        """Overridden end must follow overridden start."""
        with pytest.raises(InvalidOccurrenceExceptionError, match="modified end"):
            OccurrenceChanges(start=datetime(2025, 1, 3, 10, 0), end=datetime(2025, 1, 3, 9, 0))

    def test_changes_present_only_lists_set_fields(self):
        """Unset fields are not reported as overrides."""
        changes = OccurrenceChanges(title="Retro", attendee_ids=("dave",))

        assert changes.present() == {"title": "Retro", "attendee_ids": ("dave",)}

    def test_parse_rebuilds_variant(self):
        """Stored mappings come back as the right exception class."""
        exception = ModifyOccurrence(
            template_id="t",
            original_date=datetime(2025, 1, 3, 9, 0),
            changes=OccurrenceChanges(title="Retro"),
        )

        restored = parse_occurrence_exception(exception.model_dump(mode="json"))

        assert isinstance(restored, ModifyOccurrence)
        assert restored == exception


class TestOccurrence:
    """Tests for Occurrence construction from templates."""

    def test_from_template_copies_payload(self, daily_template):
        """Payload is copied and the template duration kept."""
        slot = datetime(2025, 1, 3, 9, 0)

        occurrence = Occurrence.from_template(daily_template, slot, original_start=slot)

        assert occurrence.id == "daily-standup_20250103T090000"
        assert occurrence.title == "Standup"
        assert occurrence.attendee_ids == ("bob", "carol")
        assert occurrence.end == datetime(2025, 1, 3, 10, 30)
        assert occurrence.duration == daily_template.duration
        assert occurrence.is_recurring_instance is True
