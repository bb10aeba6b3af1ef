from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from taproom.api.deps import DBSession, Today
from taproom.api.errors import http_error_from_service
from taproom.api.v1.events import detail_out
from taproom.api.v1.schemas.events import VenueEventsOut
from taproom.services import ServiceError
from taproom.services import events_service

router = APIRouter(prefix="/venues", tags=["venues"])


@router.get("/{venue_id}/events", response_model=VenueEventsOut)
def list_venue_events(
    venue_id: UUID,
    db: DBSession,
    today: Today,
    include_instances: bool = False,
    include_cancelled: bool = True,
    limit: int = Query(default=50, ge=1, le=200),
):
    try:
        venue, details = events_service.list_venue_events(
            db,
            venue_id,
            today,
            include_instances=include_instances,
            include_cancelled=include_cancelled,
            limit=limit,
        )
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return VenueEventsOut(
        venue_id=venue.id,
        venue_name=venue.name,
        items=[detail_out(detail) for detail in details],
        count=len(details),
    )
