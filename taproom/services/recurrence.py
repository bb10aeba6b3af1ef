"""Recurrence rules and the occurrence dates they expand to.

A rule is validated once into an immutable ``RecurrenceRule`` and then
expanded by walking the calendar one day at a time from ``start_date``.
Day-by-day scanning keeps month and leap-day overflow trivial: a monthly
rule anchored on the 31st simply finds no match in a 30-day month.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from taproom.models.event import RecurrencePattern
from taproom.services.exceptions import ValidationError

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

ONE_DAY = timedelta(days=1)


class StopDiscipline(str, enum.Enum):
    """How generation stops when a rule carries both an end date and a count.

    FIRST_BOUND stops as soon as either bound is reached.
    BOTH_BOUNDS keeps going until both are exceeded, which is how the legacy
    loop behaved (its condition OR-ed the two checks).
    """

    FIRST_BOUND = "first_bound"
    BOTH_BOUNDS = "both_bounds"


STOP_DISCIPLINE = StopDiscipline.FIRST_BOUND

RECURRENCE_FIELDS = ("pattern", "weekdays", "start_date", "end_date", "max_occurrences")


@dataclass(frozen=True)
class RecurrenceRule:
    pattern: RecurrencePattern
    start_date: date
    weekdays: frozenset[int] = frozenset()
    end_date: date | None = None
    max_occurrences: int | None = None

    @property
    def is_recurring(self) -> bool:
        return self.pattern != RecurrencePattern.NONE


def sunday_weekday(value: date) -> int:
    """Weekday number with Sunday=0 .. Saturday=6."""
    return (value.weekday() + 1) % 7


def day_name(number: int) -> str:
    if isinstance(number, int) and 0 <= number < len(WEEKDAY_NAMES):
        return WEEKDAY_NAMES[number]
    return "Unknown"


def parse_date(value: Any) -> date:
    """Parse a strict ``YYYY-MM-DD`` string (or pass a date through)."""
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_RE.match(value):
        raise ValueError("must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError("is not a valid calendar date") from exc


def _coerce_pattern(value: Any) -> RecurrencePattern | None:
    if isinstance(value, RecurrencePattern):
        return value
    try:
        return RecurrencePattern(value)
    except ValueError:
        return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_recurrence(
    pattern: Any,
    weekdays: Any = None,
    start_date: Any = None,
    end_date: Any = None,
    max_occurrences: Any = None,
) -> list[str]:
    """Return every violated recurrence rule; an empty list means valid."""
    errors: list[str] = []

    resolved = _coerce_pattern(pattern)
    if resolved is None:
        allowed = ", ".join(p.value for p in RecurrencePattern)
        errors.append(f"pattern must be one of: {allowed}")

    start: date | None = None
    end: date | None = None
    if start_date is not None:
        try:
            start = parse_date(start_date)
        except ValueError as exc:
            errors.append(f"start_date {exc}")
    if end_date is not None:
        try:
            end = parse_date(end_date)
        except ValueError as exc:
            errors.append(f"end_date {exc}")

    if resolved == RecurrencePattern.NONE:
        return errors

    if start_date is None:
        errors.append("start_date is required for recurring events")
    if end_date is None and max_occurrences is None:
        errors.append("end_date or max_occurrences is required for recurring events")
    if start and end and end <= start:
        errors.append("end_date must be after start_date")
    if max_occurrences is not None and (not _is_int(max_occurrences) or max_occurrences < 1):
        errors.append("max_occurrences must be a positive integer")

    if resolved == RecurrencePattern.WEEKLY:
        errors.extend(_validate_weekdays(weekdays))

    return errors


def _validate_weekdays(weekdays: Any) -> list[str]:
    if weekdays is None:
        return ["weekdays is required for weekly events"]
    if isinstance(weekdays, (str, bytes)) or not isinstance(weekdays, Iterable):
        return ["weekdays must be a list of day numbers"]
    days = list(weekdays)
    if not days:
        return ["weekdays must be a non-empty list"]
    if any(not _is_int(day) or day < 0 or day > 6 for day in days):
        return ["weekdays must contain only integers from 0-6 (0=Sunday, 6=Saturday)"]
    return []


def build_rule(
    pattern: Any,
    weekdays: Any = None,
    start_date: Any = None,
    end_date: Any = None,
    max_occurrences: Any = None,
) -> RecurrenceRule:
    """Validate the raw fields and freeze them into a ``RecurrenceRule``.

    Unlike ``validate_recurrence`` a one-time rule also needs its
    ``start_date`` here, since that date is its single occurrence.
    """
    errors = validate_recurrence(pattern, weekdays, start_date, end_date, max_occurrences)
    if start_date is None and _coerce_pattern(pattern) == RecurrencePattern.NONE:
        errors.append("start_date is required (it is the date of a one-time event)")
    if errors:
        raise ValidationError(errors, "recurrence validation failed")

    resolved = _coerce_pattern(pattern)
    recurring = resolved != RecurrencePattern.NONE
    return RecurrenceRule(
        pattern=resolved,
        start_date=parse_date(start_date),
        weekdays=frozenset(weekdays) if resolved == RecurrencePattern.WEEKLY else frozenset(),
        end_date=parse_date(end_date) if end_date is not None else None,
        # unchecked for one-time events, so never carried over
        max_occurrences=max_occurrences if recurring else None,
    )


def _matches(rule: RecurrenceRule, day: date) -> bool:
    if rule.pattern == RecurrencePattern.DAILY:
        return True
    if rule.pattern == RecurrencePattern.WEEKLY:
        return sunday_weekday(day) in rule.weekdays
    if rule.pattern == RecurrencePattern.MONTHLY:
        return day.day == rule.start_date.day
    if rule.pattern == RecurrencePattern.YEARLY:
        return (day.month, day.day) == (rule.start_date.month, rule.start_date.day)
    return False


def _keep_walking(
    rule: RecurrenceRule, day: date, emitted: int, discipline: StopDiscipline
) -> bool:
    before_end = rule.end_date is None or day <= rule.end_date
    under_max = rule.max_occurrences is None or emitted < rule.max_occurrences
    if rule.end_date is not None and rule.max_occurrences is not None:
        if discipline == StopDiscipline.BOTH_BOUNDS:
            return before_end or under_max
    return before_end and under_max


def scan_horizon(rule: RecurrenceRule, years: int) -> date:
    """Last day a walk from ``rule.start_date`` may visit, clamped below ``date.max``."""
    ordinal = rule.start_date.toordinal() + int(years * 365.25)
    return date.fromordinal(min(ordinal, date.max.toordinal() - 1))


def walks_past(
    rule: RecurrenceRule,
    horizon: date,
    emitted: int,
    discipline: StopDiscipline = STOP_DISCIPLINE,
) -> bool:
    """True when a walk cut off at ``horizon`` had not yet met its bounds."""
    if not rule.is_recurring:
        return False
    return _keep_walking(rule, horizon + ONE_DAY, emitted, discipline)


def iter_occurrences(
    rule: RecurrenceRule,
    discipline: StopDiscipline = STOP_DISCIPLINE,
    until: date | None = None,
) -> Iterator[date]:
    if not rule.is_recurring:
        yield rule.start_date
        return

    day = rule.start_date
    emitted = 0
    while _keep_walking(rule, day, emitted, discipline):
        if until is not None and day > until:
            return
        if _matches(rule, day):
            emitted += 1
            yield day
        if day == date.max:
            return
        day += ONE_DAY


def generate_dates(
    rule: RecurrenceRule, discipline: StopDiscipline = STOP_DISCIPLINE
) -> list[date]:
    return list(iter_occurrences(rule, discipline))


def describe_recurrence(pattern: Any, weekdays: Iterable[int] | None = None) -> str:
    resolved = _coerce_pattern(pattern)
    if resolved == RecurrencePattern.NONE:
        return "One-time event"
    if resolved == RecurrencePattern.DAILY:
        return "Daily"
    if resolved == RecurrencePattern.WEEKLY:
        names = [day_name(day) for day in sorted(weekdays or [])]
        return f"Weekly on {', '.join(names)}"
    if resolved == RecurrencePattern.MONTHLY:
        return "Monthly"
    if resolved == RecurrencePattern.YEARLY:
        return "Yearly"
    return "Unknown pattern"
