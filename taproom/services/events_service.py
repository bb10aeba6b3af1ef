from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import structlog
from sqlalchemy.orm import Session

from taproom.api.v1.schemas.events import EventCreate, EventUpdate
from taproom.core.config import settings
from taproom.models import Event, RecurrencePattern, Venue
from taproom.services.error_codes import ErrorCode
from taproom.services.exceptions import NotFoundError, ValidationError
from taproom.services.instance_sync import InstanceSynchronizer, MasterEdit, SyncReport
from taproom.services.overrides import (
    MASTER_EDIT_RESETS,
    EffectiveInstance,
    crosses_midnight,
    parse_time,
    resolve,
    times_in_order,
)
from taproom.services.recurrence import (
    RECURRENCE_FIELDS,
    build_rule,
    describe_recurrence,
    validate_recurrence,
)
from taproom.services.transactions import in_transaction
from taproom.stores import (
    InstanceStore,
    SqlEventStore,
    SqlInstanceStore,
    SqlTagStore,
    SqlVenueStore,
)

logger = structlog.get_logger(__name__)

TITLE_MAX_LENGTH = 255
URL_MAX_LENGTH = 500
VENUE_UPCOMING_LIMIT = 5

# (field, max length or None); these may be cleared with null or ""
OPTIONAL_TEXT_FIELDS = (
    ("description", None),
    ("image_url", URL_MAX_LENGTH),
    ("external_link", URL_MAX_LENGTH),
)


@dataclass
class EventDetail:
    event: Event
    recurrence_description: str
    upcoming_instances: list[EffectiveInstance] = field(default_factory=list)


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


def _check_title(value: Any, errors: list[str]) -> str | None:
    title = _normalize_text(value)
    if title is None:
        errors.append("title is required")
    elif len(title) > TITLE_MAX_LENGTH:
        errors.append(f"title must be at most {TITLE_MAX_LENGTH} characters")
    return title


def _check_optional_text(name: str, value: Any, limit: int | None, errors: list[str]) -> str | None:
    text = _normalize_text(value)
    if text is not None and limit is not None and len(text) > limit:
        errors.append(f"{name} must be at most {limit} characters")
    return text


def _check_time(name: str, value: Any, errors: list[str]):
    if value is None:
        errors.append(f"{name} is required")
        return None
    try:
        return parse_time(value)
    except ValueError as exc:
        errors.append(f"{name} {exc}")
        return None


def _describe(event: Event) -> str:
    return describe_recurrence(event.pattern, event.weekdays)


def _require_venue(db: Session, venue_id: uuid.UUID) -> Venue:
    venue = SqlVenueStore(db).get_active(venue_id)
    if not venue:
        raise NotFoundError(ErrorCode.VENUE_NOT_FOUND.value, "venue not found or inactive")
    return venue


def _require_tag(db: Session, tag_id: uuid.UUID | None) -> None:
    if tag_id is not None and not SqlTagStore(db).exists(tag_id):
        raise NotFoundError(ErrorCode.TAG_NOT_FOUND.value, "event tag not found")


def create_event(
    db: Session,
    payload: EventCreate,
    today: date,
    *,
    instances: InstanceStore | None = None,
) -> tuple[Event, int]:
    errors: list[str] = []
    title = _check_title(payload.title, errors)
    optional = {
        name: _check_optional_text(name, getattr(payload, name), limit, errors)
        for name, limit in OPTIONAL_TEXT_FIELDS
    }
    start_time = _check_time("start_time", payload.start_time, errors)
    end_time = _check_time("end_time", payload.end_time, errors)
    if start_time and end_time and not times_in_order(start_time, end_time):
        errors.append("end_time must be after start_time")

    recurrence = {
        "pattern": payload.pattern,
        "weekdays": payload.weekdays,
        "start_date": payload.start_date,
        "end_date": payload.end_date,
        "max_occurrences": payload.max_occurrences,
    }
    errors.extend(validate_recurrence(**recurrence))
    if payload.start_date is None and payload.pattern == RecurrencePattern.NONE.value:
        errors.append("start_date is required (it is the date of a one-time event)")
    if errors:
        raise ValidationError(errors)

    rule = build_rule(**recurrence)
    sync = InstanceSynchronizer(instances or SqlInstanceStore(db))
    dates = sync.plan(rule)

    _require_venue(db, payload.venue_id)
    _require_tag(db, payload.event_tag_id)

    event = Event(
        venue_id=payload.venue_id,
        title=title,
        event_tag_id=payload.event_tag_id,
        start_time=start_time,
        end_time=end_time,
        crosses_midnight=crosses_midnight(start_time, end_time),
        pattern=rule.pattern,
        weekdays=sorted(rule.weekdays) if rule.pattern == RecurrencePattern.WEEKLY else None,
        start_date=rule.start_date,
        end_date=rule.end_date,
        max_occurrences=rule.max_occurrences,
        is_active=True,
        **optional,
    )

    def work() -> int:
        SqlEventStore(db).add(event)
        return len(sync.materialize(event, dates))

    created = in_transaction(db, "event_create", work)
    logger.info(
        "event_created",
        event_id=str(event.id),
        venue_id=str(event.venue_id),
        pattern=event.pattern.value,
        instances_created=created,
    )
    return event, created


def _master_changes(data: dict[str, Any], errors: list[str]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    if "title" in data:
        changes["title"] = _check_title(data["title"], errors)
    for name, limit in OPTIONAL_TEXT_FIELDS:
        if name in data:
            changes[name] = _check_optional_text(name, data[name], limit, errors)
    for name in ("start_time", "end_time"):
        if name in data:
            changes[name] = _check_time(name, data[name], errors)
    if "event_tag_id" in data:
        changes["event_tag_id"] = data["event_tag_id"]
    return changes


def _merged_rule_fields(event: Event, data: dict[str, Any]) -> dict[str, Any]:
    return {name: data[name] if name in data else getattr(event, name) for name in RECURRENCE_FIELDS}


def update_event(
    db: Session,
    event_id: uuid.UUID,
    patch: EventUpdate,
    today: date,
    *,
    instances: InstanceStore | None = None,
) -> tuple[Event, SyncReport]:
    data = patch.model_dump(exclude_unset=True)
    force_regenerate = bool(data.pop("force_regenerate", False))
    cancel_future = data.pop("cancel_future_instances", None)
    if not data and not force_regenerate and cancel_future is None:
        raise ValidationError(["at least one field must be provided"])

    events = SqlEventStore(db)
    sync = InstanceSynchronizer(instances or SqlInstanceStore(db))

    def work() -> tuple[Event, SyncReport]:
        # Row lock serializes concurrent regenerations of the same event
        event = events.get(event_id, for_update=True)
        if not event:
            raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")

        errors: list[str] = []
        changes = _master_changes(data, errors)

        start_time = changes.get("start_time", event.start_time)
        end_time = changes.get("end_time", event.end_time)
        if {"start_time", "end_time"} & changes.keys() and start_time and end_time:
            if not times_in_order(start_time, end_time):
                errors.append("end_time must be after start_time")
            changes["crosses_midnight"] = crosses_midnight(start_time, end_time)

        rule = None
        if force_regenerate or any(name in data for name in RECURRENCE_FIELDS):
            merged = _merged_rule_fields(event, data)
            if merged["start_date"] is None:
                errors.append("start_date cannot be null")
            else:
                rule_errors = validate_recurrence(**merged)
                errors.extend(rule_errors)
                if not rule_errors:
                    rule = build_rule(**merged)
                    # refuse oversized or unbounded rules before any write
                    try:
                        sync.plan(rule)
                    except ValidationError as exc:
                        errors.extend(exc.errors)
        if errors:
            raise ValidationError(errors)

        _require_tag(db, changes.get("event_tag_id"))

        if rule is not None:
            changes.update(
                pattern=rule.pattern,
                weekdays=sorted(rule.weekdays) if rule.pattern == RecurrencePattern.WEEKLY else None,
                start_date=rule.start_date,
                end_date=rule.end_date,
                max_occurrences=rule.max_occurrences,
            )
        events.update(event, changes)

        edited = frozenset(name for name, _ in MASTER_EDIT_RESETS if name in data)
        report = sync.apply_edit(
            event,
            MasterEdit(edited_fields=edited, rule=rule, cancel_future=cancel_future),
            today,
        )
        return event, report

    event, report = in_transaction(db, "event_update", work)
    logger.info(
        "event_updated",
        event_id=str(event.id),
        fields=sorted(data),
        regenerated=report.inserted > 0 or report.deleted > 0,
    )
    return event, report


def deactivate_event(db: Session, event_id: uuid.UUID) -> Event:
    events = SqlEventStore(db)

    def work() -> Event:
        event = events.get(event_id, for_update=True)
        if not event:
            raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
        return events.update(event, {"is_active": False})

    event = in_transaction(db, "event_deactivate", work)
    logger.info("event_deactivated", event_id=str(event.id))
    return event


def _upcoming(
    db: Session, event: Event, today: date, limit: int, include_cancelled: bool
) -> list[EffectiveInstance]:
    rows = SqlInstanceStore(db).select(
        event.id,
        date_from=today,
        cancelled=None if include_cancelled else False,
        limit=limit,
    )
    return [resolve(event, instance) for instance in rows]


def get_event(
    db: Session, event_id: uuid.UUID, today: date, *, include_cancelled: bool = True
) -> EventDetail:
    event = SqlEventStore(db).get(event_id)
    if not event:
        raise NotFoundError(ErrorCode.EVENT_NOT_FOUND.value, "event not found")
    return EventDetail(
        event=event,
        recurrence_description=_describe(event),
        upcoming_instances=_upcoming(
            db, event, today, settings.upcoming_instances_limit, include_cancelled
        ),
    )


def list_venue_events(
    db: Session,
    venue_id: uuid.UUID,
    today: date,
    *,
    include_instances: bool = False,
    include_cancelled: bool = True,
    limit: int = 50,
) -> tuple[Venue, list[EventDetail]]:
    venue = _require_venue(db, venue_id)
    details = []
    for event in SqlEventStore(db).list_for_venue(venue_id, limit):
        upcoming = (
            _upcoming(db, event, today, VENUE_UPCOMING_LIMIT, include_cancelled)
            if include_instances
            else []
        )
        details.append(EventDetail(event, _describe(event), upcoming))
    return venue, details
