from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taproom.models import Event, EventInstance, EventTag, Venue
from taproom.services.error_codes import ErrorCode
from taproom.services.exceptions import ConflictError
from taproom.stores.base import EventStore, InstanceQuery, InstanceStore, TagStore, VenueStore


def _duplicate_occurrence(event_id: Any, day: Any) -> ConflictError:
    return ConflictError(
        ErrorCode.DUPLICATE_OCCURRENCE.value,
        f"event {event_id} already has an occurrence on {day}",
    )


class SqlEventStore(EventStore):
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, event_id: uuid.UUID, *, for_update: bool = False) -> Event | None:
        stmt = select(Event).where(Event.id == event_id, Event.is_active.is_(True))
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.scalar(stmt)

    def add(self, event: Event) -> Event:
        self.db.add(event)
        self.db.flush()
        return event

    def update(self, event: Event, changes: dict[str, Any]) -> Event:
        for key, value in changes.items():
            setattr(event, key, value)
        self.db.add(event)
        self.db.flush()
        return event

    def list_for_venue(self, venue_id: uuid.UUID, limit: int) -> Sequence[Event]:
        stmt = (
            select(Event)
            .where(Event.venue_id == venue_id, Event.is_active.is_(True))
            .order_by(Event.start_date.desc(), Event.created_at.desc())
            .limit(limit)
        )
        return self.db.scalars(stmt).all()


class SqlInstanceStore(InstanceStore):
    def __init__(self, db: Session) -> None:
        self.db = db

    def insert(self, event_id: uuid.UUID, day: date, crosses_midnight: bool) -> EventInstance:
        instance = EventInstance(event_id=event_id, date=day, crosses_midnight=crosses_midnight)
        self.db.add(instance)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise _duplicate_occurrence(event_id, day) from exc
        return instance

    def get(self, instance_id: uuid.UUID) -> EventInstance | None:
        stmt = (
            select(EventInstance)
            .join(Event, Event.id == EventInstance.event_id)
            .where(EventInstance.id == instance_id, Event.is_active.is_(True))
        )
        return self.db.scalar(stmt)

    def update(self, instance: EventInstance, changes: dict[str, Any]) -> EventInstance:
        for key, value in changes.items():
            setattr(instance, key, value)
        self.db.add(instance)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise _duplicate_occurrence(instance.event_id, changes.get("date")) from exc
        return instance

    def delete_from(self, event_id: uuid.UUID, day: date) -> int:
        result = self.db.execute(
            delete(EventInstance).where(
                EventInstance.event_id == event_id,
                EventInstance.date >= day,
            )
        )
        return result.rowcount or 0

    def select(
        self,
        event_id: uuid.UUID,
        date_from: date | None = None,
        date_to: date | None = None,
        cancelled: bool | None = None,
        limit: int | None = None,
    ) -> Sequence[EventInstance]:
        stmt = select(EventInstance).where(EventInstance.event_id == event_id)
        if date_from is not None:
            stmt = stmt.where(EventInstance.date >= date_from)
        if date_to is not None:
            stmt = stmt.where(EventInstance.date <= date_to)
        if cancelled is not None:
            stmt = stmt.where(EventInstance.is_cancelled.is_(cancelled))
        stmt = stmt.order_by(EventInstance.date.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return self.db.scalars(stmt).all()

    def clear_overrides(self, event_id: uuid.UUID, day: date, columns: Sequence[str]) -> int:
        if not columns:
            return 0
        result = self.db.execute(
            update(EventInstance)
            .where(EventInstance.event_id == event_id, EventInstance.date >= day)
            .values({column: None for column in columns})
        )
        return result.rowcount or 0

    def set_cancelled(self, event_id: uuid.UUID, day: date, cancelled: bool) -> int:
        result = self.db.execute(
            update(EventInstance)
            .where(EventInstance.event_id == event_id, EventInstance.date >= day)
            .values(is_cancelled=cancelled)
        )
        return result.rowcount or 0

    def search(self, query: InstanceQuery) -> tuple[list[tuple[EventInstance, Event]], int]:
        effective_tag = func.coalesce(EventInstance.custom_tag_id, Event.event_tag_id)
        effective_start = func.coalesce(EventInstance.custom_start_time, Event.start_time)

        stmt = (
            select(EventInstance, Event)
            .join(Event, Event.id == EventInstance.event_id)
            .join(Venue, Venue.id == Event.venue_id)
            .where(Event.is_active.is_(True), Venue.is_active.is_(True))
        )
        if query.venue_id is not None:
            stmt = stmt.where(Event.venue_id == query.venue_id)
        if query.event_id is not None:
            stmt = stmt.where(EventInstance.event_id == query.event_id)
        if query.date_from is not None:
            stmt = stmt.where(EventInstance.date >= query.date_from)
        if query.date_to is not None:
            stmt = stmt.where(EventInstance.date <= query.date_to)
        if query.tag_id is not None:
            stmt = stmt.where(effective_tag == query.tag_id)
        if not query.include_cancelled:
            stmt = stmt.where(EventInstance.is_cancelled.is_(False))

        total = int(
            self.db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        )

        stmt = stmt.order_by(EventInstance.date.asc(), effective_start.asc()).offset(query.offset)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        rows = [(row[0], row[1]) for row in self.db.execute(stmt).all()]
        return rows, total


class SqlTagStore(TagStore):
    def __init__(self, db: Session) -> None:
        self.db = db

    def exists(self, tag_id: uuid.UUID) -> bool:
        return self.db.scalar(select(EventTag.id).where(EventTag.id == tag_id)) is not None


class SqlVenueStore(VenueStore):
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_active(self, venue_id: uuid.UUID) -> Venue | None:
        return self.db.scalar(
            select(Venue).where(Venue.id == venue_id, Venue.is_active.is_(True))
        )
