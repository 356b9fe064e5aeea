"""RFC 5545 RRULE export and import for recurrence patterns.

Only the subset the engine can honour is accepted: FREQ (DAILY, WEEKLY,
MONTHLY), INTERVAL, BYDAY without ordinals, UNTIL, COUNT and WKST.

Monthly patterns are exported without BYMONTHDAY. The sticky month-end
clamping applied by ``RecurrenceGenerator`` is not expressible in RRULE, so
other RRULE consumers will not clamp the same way for anchors after the 28th.
"""

from datetime import datetime, timezone
import logging
from typing import Optional

from .enums import Frequency, Weekday
from .exceptions import RRuleParseError
from .models import EndsAfter, EndsOn, RecurrencePattern

UTC = timezone.utc

logger = logging.getLogger(__name__)

WEEKDAY_CODES: dict[Weekday, str] = {
    Weekday.SUNDAY: "SU",
    Weekday.MONDAY: "MO",
    Weekday.TUESDAY: "TU",
    Weekday.WEDNESDAY: "WE",
    Weekday.THURSDAY: "TH",
    Weekday.FRIDAY: "FR",
    Weekday.SATURDAY: "SA",
}
CODE_WEEKDAYS: dict[str, Weekday] = {code: day for day, code in WEEKDAY_CODES.items()}

_UNTIL_FORMAT = "%Y%m%dT%H%M%S"


def pattern_to_rrule(pattern: RecurrencePattern, week_start: Weekday = Weekday.SUNDAY) -> str:
    """Render ``pattern`` as an RRULE value (without the ``RRULE:`` prefix).

    Args:
        pattern: Recurrence rule to export
        week_start: Week start used for weekly alignment, emitted as WKST

    Returns:
        e.g. ``"FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;WKST=SU;COUNT=10"``
    """
    parts = [f"FREQ={pattern.frequency.value}", f"INTERVAL={pattern.interval}"]

    if pattern.frequency == Frequency.WEEKLY:
        parts.append("BYDAY=" + ",".join(WEEKDAY_CODES[day] for day in pattern.days_of_week))
        parts.append(f"WKST={WEEKDAY_CODES[week_start]}")

    termination = pattern.termination
    if isinstance(termination, EndsAfter):
        parts.append(f"COUNT={termination.count}")
    elif isinstance(termination, EndsOn):
        parts.append(f"UNTIL={_format_until(termination.date)}")

    return ";".join(parts)


def pattern_from_rrule(rrule_string: str, anchor: Optional[datetime] = None) -> RecurrencePattern:
    """Parse an RRULE value into a ``RecurrencePattern``.

    Args:
        rrule_string: RRULE value, with or without the ``RRULE:`` prefix
        anchor: Series start, used to reject an UNTIL before the first occurrence

    Raises:
        RRuleParseError: If the string is empty, malformed or uses parts the
            engine cannot honour, or if UNTIL and ``anchor`` disagree on
            having a timezone
        RecurrencePatternError: If the parsed rule violates a pattern invariant
    """
    if not rrule_string or not rrule_string.strip():
        raise RRuleParseError("empty RRULE string", rrule_string)

    text = rrule_string.strip()
    if text.upper().startswith("RRULE:"):
        text = text[len("RRULE:"):]

    params: dict[str, str] = {}
    for part in text.split(";"):
        if not part.strip():
            continue
        if "=" not in part:
            raise RRuleParseError(f"malformed RRULE part {part!r}", rrule_string)
        key, value = part.split("=", 1)
        params[key.strip().upper()] = value.strip()

    if "FREQ" not in params:
        raise RRuleParseError("RRULE missing required FREQ parameter", rrule_string)

    unsupported = sorted(set(params) - {"FREQ", "INTERVAL", "BYDAY", "UNTIL", "COUNT", "WKST"})
    if unsupported:
        raise RRuleParseError(f"unsupported RRULE parts: {', '.join(unsupported)}", rrule_string)

    try:
        frequency = Frequency(params["FREQ"].upper())
    except ValueError as e:
        raise RRuleParseError(f"unsupported frequency: {params['FREQ']}", rrule_string) from e

    interval = _parse_int(params.get("INTERVAL", "1"), "INTERVAL", rrule_string)
    count = _parse_int(params["COUNT"], "COUNT", rrule_string) if "COUNT" in params else None
    until = _parse_until(params["UNTIL"], rrule_string) if "UNTIL" in params else None
    if until is not None and anchor is not None:
        # RFC 5545: UNTIL is floating for a floating DTSTART and UTC for an aware one.
        if anchor.tzinfo is None and until.tzinfo is not None:
            raise RRuleParseError(
                "UNTIL is in UTC but the series start has no timezone; "
                "use a floating UNTIL or a timezone-aware start",
                rrule_string,
            )
        if anchor.tzinfo is not None and until.tzinfo is None:
            raise RRuleParseError(
                "UNTIL has no timezone but the series start is timezone-aware; "
                "use a UTC UNTIL (trailing Z)",
                rrule_string,
            )

    days: list[Weekday] = []
    if "BYDAY" in params:
        for code in params["BYDAY"].split(","):
            code = code.strip().upper()
            if code not in CODE_WEEKDAYS:
                raise RRuleParseError(f"unsupported BYDAY value {code!r}", rrule_string)
            days.append(CODE_WEEKDAYS[code])

    logger.debug(
        "Parsed RRULE %s: freq=%s interval=%d days=%s count=%s until=%s",
        rrule_string,
        frequency.value,
        interval,
        days,
        count,
        until,
    )
    return RecurrencePattern.from_fields(
        frequency,
        interval=interval,
        days_of_week=days,
        end_date=until,
        occurrences=count,
        anchor=anchor,
    )


def _format_until(value: datetime) -> str:
    if value.tzinfo is None:
        return value.strftime(_UNTIL_FORMAT)
    return value.astimezone(UTC).strftime(_UNTIL_FORMAT) + "Z"


def _parse_int(value: str, name: str, rrule_string: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RRuleParseError(f"{name} must be an integer, got {value!r}", rrule_string) from e


def _parse_until(value: str, rrule_string: str) -> datetime:
    """Parse UNTIL in basic or extended ISO form; a trailing ``Z`` means UTC."""
    dt_str = value.rstrip("Z")

    formats = [
        _UNTIL_FORMAT,  # 20250623T083000
        "%Y-%m-%dT%H:%M:%S",  # 2025-06-23T08:30:00
        "%Y%m%d",  # 20250623
        "%Y-%m-%d",  # 2025-06-23
    ]

    for fmt in formats:
        try:
            dt = datetime.strptime(dt_str, fmt)
        except ValueError:  # noqa: PERF203
            continue
        if value.endswith("Z"):
            dt = dt.replace(tzinfo=UTC)
        return dt

    raise RRuleParseError(f"unable to parse UNTIL value {value!r}", rrule_string)
