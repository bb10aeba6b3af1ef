from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from taproom.api.deps import DBSession, Today
from taproom.api.errors import http_error_from_service
from taproom.api.v1.schemas.events import (
    EventCreate,
    EventCreatedOut,
    EventDetailOut,
    EventOut,
    EventUpdate,
    EventUpdatedOut,
    SyncSummaryOut,
)
from taproom.api.v1.schemas.instances import EffectiveInstanceOut
from taproom.services import ServiceError
from taproom.services import events_service
from taproom.services.recurrence import describe_recurrence

router = APIRouter(prefix="/events", tags=["events"])


def detail_out(detail: events_service.EventDetail) -> EventDetailOut:
    return EventDetailOut(
        **EventOut.model_validate(detail.event).model_dump(),
        recurrence_description=detail.recurrence_description,
        upcoming_instances=[
            EffectiveInstanceOut.model_validate(item) for item in detail.upcoming_instances
        ],
    )


@router.post("", response_model=EventCreatedOut, status_code=201)
def create_event(payload: EventCreate, db: DBSession, today: Today):
    try:
        event, created = events_service.create_event(db, payload, today)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventCreatedOut(
        event_id=event.id,
        recurrence_description=describe_recurrence(event.pattern, event.weekdays),
        instances_created=created,
    )


@router.get("/{event_id}", response_model=EventDetailOut)
def get_event(event_id: UUID, db: DBSession, today: Today, include_cancelled: bool = True):
    try:
        detail = events_service.get_event(
            db, event_id, today, include_cancelled=include_cancelled
        )
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return detail_out(detail)


@router.patch("/{event_id}", response_model=EventUpdatedOut)
def update_event(event_id: UUID, payload: EventUpdate, db: DBSession, today: Today):
    try:
        event, report = events_service.update_event(db, event_id, payload, today)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EventUpdatedOut(
        event=EventOut.model_validate(event),
        instances=SyncSummaryOut.model_validate(report),
    )


@router.delete("/{event_id}", response_model=EventOut)
def deactivate_event(event_id: UUID, db: DBSession):
    try:
        event = events_service.deactivate_event(db, event_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return event
