"""Per-occurrence override resolution.

An instance shows ``custom_<field>`` when it is set and the master event's
value otherwise. ``crosses_midnight`` is never inherited directly: it is
recomputed from whichever start/end pair is effective for the instance.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import date, time
from typing import Any

TIME_RE = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d:[0-5]\d$")

# (master attribute, instance override attribute)
OVERRIDE_FIELDS: tuple[tuple[str, str], ...] = (
    ("title", "custom_title"),
    ("description", "custom_description"),
    ("start_time", "custom_start_time"),
    ("end_time", "custom_end_time"),
    ("image_url", "custom_image_url"),
    ("external_link", "custom_external_link"),
    ("event_tag_id", "custom_tag_id"),
)

# Editing one of these master fields drops the matching override on every
# future instance. Adding an overridable field only needs an entry here.
MASTER_EDIT_RESETS: tuple[tuple[str, str], ...] = (
    ("title", "custom_title"),
    ("description", "custom_description"),
    ("start_time", "custom_start_time"),
    ("end_time", "custom_end_time"),
    ("image_url", "custom_image_url"),
    ("external_link", "custom_external_link"),
)

TIME_FIELDS = ("start_time", "end_time")


def parse_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not TIME_RE.match(value):
        raise ValueError("must be in HH:MM:SS format")
    hours, minutes, seconds = (int(part) for part in value.split(":"))
    return time(hours, minutes, seconds)


def crosses_midnight(start: time | str, end: time | str) -> bool:
    """True when the interval wraps past midnight.

    Only hours and minutes are compared; seconds never flip the result.
    """
    start_t, end_t = parse_time(start), parse_time(end)
    if end_t.hour < start_t.hour:
        return True
    return end_t.hour == start_t.hour and end_t.minute < start_t.minute


def times_in_order(start: time | str, end: time | str) -> bool:
    """Check an interval is well formed: wrapping ones always pass,
    others need ``end`` strictly after ``start``."""
    if crosses_midnight(start, end):
        return True
    return parse_time(end) > parse_time(start)


@dataclass(frozen=True)
class EffectiveInstance:
    instance_id: uuid.UUID
    event_id: uuid.UUID
    venue_id: uuid.UUID
    date: date
    is_cancelled: bool
    title: str
    description: str | None
    start_time: time
    end_time: time
    image_url: str | None
    external_link: str | None
    event_tag_id: uuid.UUID | None
    crosses_midnight: bool
    overridden_fields: tuple[str, ...] = ()


_CUSTOM_ATTR = dict(OVERRIDE_FIELDS)


def effective_value(master: Any, instance: Any, field: str) -> Any:
    custom = getattr(instance, _CUSTOM_ATTR[field])
    return custom if custom is not None else getattr(master, field)


def effective_times(master: Any, instance: Any) -> tuple[time, time]:
    return (
        effective_value(master, instance, "start_time"),
        effective_value(master, instance, "end_time"),
    )


def effective_crosses_midnight(master: Any, instance: Any) -> bool:
    return crosses_midnight(*effective_times(master, instance))


def resolve(master: Any, instance: Any) -> EffectiveInstance:
    values = {field: effective_value(master, instance, field) for field, _ in OVERRIDE_FIELDS}
    overridden = tuple(
        field for field, custom in OVERRIDE_FIELDS if getattr(instance, custom) is not None
    )
    return EffectiveInstance(
        instance_id=instance.id,
        event_id=instance.event_id,
        venue_id=master.venue_id,
        date=instance.date,
        is_cancelled=bool(instance.is_cancelled),
        crosses_midnight=crosses_midnight(values["start_time"], values["end_time"]),
        overridden_fields=overridden,
        **values,
    )
