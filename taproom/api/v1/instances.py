from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query

from taproom.api.deps import DBSession, Today
from taproom.api.errors import http_error_from_service
from taproom.api.v1.schemas.instances import (
    EffectiveInstanceOut,
    InstanceListOut,
    InstanceUpdate,
)
from taproom.services import ServiceError
from taproom.services import instances_service
from taproom.services.instances_service import InstanceFilters

router = APIRouter(prefix="/event-instances", tags=["event-instances"])


@router.get("", response_model=InstanceListOut)
def list_instances(
    db: DBSession,
    today: Today,
    venue_id: UUID | None = None,
    event_id: UUID | None = None,
    tag_id: UUID | None = None,
    date_from: str | None = Query(default=None, description="YYYY-MM-DD"),
    date_to: str | None = Query(default=None, description="YYYY-MM-DD"),
    upcoming: bool = False,
    include_cancelled: bool = False,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
):
    filters = InstanceFilters(
        venue_id=venue_id,
        event_id=event_id,
        tag_id=tag_id,
        date_from=date_from,
        date_to=date_to,
        upcoming=upcoming,
        include_cancelled=include_cancelled,
    )
    try:
        items, total = instances_service.list_instances(
            db, filters, today, page=page, page_size=page_size
        )
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return InstanceListOut(
        items=[EffectiveInstanceOut.model_validate(item) for item in items],
        page=page,
        page_size=page_size,
        total=total,
    )


@router.get("/{instance_id}", response_model=EffectiveInstanceOut)
def get_instance(instance_id: UUID, db: DBSession):
    try:
        effective = instances_service.get_instance(db, instance_id)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EffectiveInstanceOut.model_validate(effective)


@router.patch("/{instance_id}", response_model=EffectiveInstanceOut)
def update_instance(instance_id: UUID, payload: InstanceUpdate, db: DBSession):
    try:
        effective = instances_service.update_instance(db, instance_id, payload)
    except ServiceError as err:
        raise http_error_from_service(err) from err
    return EffectiveInstanceOut.model_validate(effective)
