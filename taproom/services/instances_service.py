from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any

import structlog
from sqlalchemy.orm import Session

from taproom.api.v1.schemas.instances import InstanceUpdate
from taproom.models import Event
from taproom.services.error_codes import ErrorCode
from taproom.services.events_service import TITLE_MAX_LENGTH, URL_MAX_LENGTH
from taproom.services.exceptions import NotFoundError, ValidationError
from taproom.services.overrides import (
    EffectiveInstance,
    crosses_midnight,
    parse_time,
    resolve,
    times_in_order,
)
from taproom.services.recurrence import parse_date
from taproom.services.transactions import in_transaction
from taproom.stores import InstanceQuery, SqlInstanceStore, SqlTagStore

logger = structlog.get_logger(__name__)

# custom text override -> max length (None = unbounded)
TEXT_OVERRIDES = {
    "custom_title": TITLE_MAX_LENGTH,
    "custom_description": None,
    "custom_image_url": URL_MAX_LENGTH,
    "custom_external_link": URL_MAX_LENGTH,
}

TIME_OVERRIDES = ("custom_start_time", "custom_end_time")


@dataclass(frozen=True)
class InstanceFilters:
    venue_id: uuid.UUID | None = None
    event_id: uuid.UUID | None = None
    tag_id: uuid.UUID | None = None
    date_from: str | None = None
    date_to: str | None = None
    upcoming: bool = False
    include_cancelled: bool = False


def coerce_bool(value: Any) -> bool:
    """Accept real booleans and the strings "true"/"false" only."""
    if isinstance(value, bool):
        return value
    if value in ("true", "false"):
        return value == "true"
    raise ValueError("must be a boolean or 'true'/'false'")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _require_instance(db: Session, instance_id: uuid.UUID):
    instance = SqlInstanceStore(db).get(instance_id)
    if not instance:
        raise NotFoundError(ErrorCode.INSTANCE_NOT_FOUND.value, "event instance not found")
    return instance


def get_instance(db: Session, instance_id: uuid.UUID) -> EffectiveInstance:
    instance = _require_instance(db, instance_id)
    return resolve(db.get(Event, instance.event_id), instance)


def list_instances(
    db: Session,
    filters: InstanceFilters,
    today: date,
    *,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[EffectiveInstance], int]:
    errors: list[str] = []
    bounds: dict[str, date | None] = {"date_from": None, "date_to": None}
    for name in bounds:
        raw = getattr(filters, name)
        if raw is None:
            continue
        try:
            bounds[name] = parse_date(raw)
        except ValueError as exc:
            errors.append(f"{name} {exc}")
    if errors:
        raise ValidationError(errors)

    date_from = bounds["date_from"]
    if filters.upcoming and (date_from is None or date_from < today):
        date_from = today

    rows, total = SqlInstanceStore(db).search(
        InstanceQuery(
            venue_id=filters.venue_id,
            event_id=filters.event_id,
            date_from=date_from,
            date_to=bounds["date_to"],
            tag_id=filters.tag_id,
            include_cancelled=filters.include_cancelled,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
    )
    return [resolve(event, instance) for instance, event in rows], total


def _instance_changes(data: dict[str, Any], errors: list[str]) -> dict[str, Any]:
    changes: dict[str, Any] = {}

    if "date" in data:
        try:
            changes["date"] = parse_date(data["date"])
        except ValueError as exc:
            errors.append(f"date {exc}")

    if data.get("is_cancelled") is not None:
        try:
            changes["is_cancelled"] = coerce_bool(data["is_cancelled"])
        except ValueError as exc:
            errors.append(f"is_cancelled {exc}")

    for name, limit in TEXT_OVERRIDES.items():
        if name not in data:
            continue
        value = _blank_to_none(data[name])
        if value is not None and limit is not None and len(value) > limit:
            errors.append(f"{name} must be at most {limit} characters")
        changes[name] = value

    for name in TIME_OVERRIDES:
        if name not in data:
            continue
        value = _blank_to_none(data[name])
        if value is None:
            changes[name] = None
            continue
        try:
            changes[name] = parse_time(value)
        except ValueError as exc:
            errors.append(f"{name} {exc}")

    if "custom_tag_id" in data:
        value = _blank_to_none(data["custom_tag_id"])
        if value is None:
            changes["custom_tag_id"] = None
        else:
            try:
                changes["custom_tag_id"] = uuid.UUID(str(value))
            except ValueError:
                errors.append("custom_tag_id must be a valid UUID")

    return changes


def update_instance(
    db: Session, instance_id: uuid.UUID, patch: InstanceUpdate
) -> EffectiveInstance:
    data = patch.model_dump(exclude_unset=True)
    if not data:
        raise ValidationError(["at least one field must be provided"])

    store = SqlInstanceStore(db)

    def work() -> EffectiveInstance:
        instance = _require_instance(db, instance_id)
        master = db.get(Event, instance.event_id)

        errors: list[str] = []
        changes = _instance_changes(data, errors)

        if any(name in changes for name in TIME_OVERRIDES):
            start = changes.get("custom_start_time", instance.custom_start_time)
            end = changes.get("custom_end_time", instance.custom_end_time)
            start = start if start is not None else master.start_time
            end = end if end is not None else master.end_time
            if not times_in_order(start, end):
                errors.append("end time must be after start time")
            changes["crosses_midnight"] = crosses_midnight(start, end)
        if errors:
            raise ValidationError(errors)

        tag_id = changes.get("custom_tag_id")
        if tag_id is not None and not SqlTagStore(db).exists(tag_id):
            raise NotFoundError(ErrorCode.TAG_NOT_FOUND.value, "event tag not found")

        store.update(instance, changes)
        return resolve(master, instance)

    effective = in_transaction(db, "instance_update", work)
    logger.info(
        "instance_updated",
        instance_id=str(instance_id),
        event_id=str(effective.event_id),
        fields=sorted(data),
    )
    return effective
