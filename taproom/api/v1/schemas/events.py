from __future__ import annotations

import datetime as dt
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from taproom.api.v1.schemas.instances import EffectiveInstanceOut
from taproom.models.event import RecurrencePattern


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class EventCreate(SchemaBase):
    venue_id: UUID
    title: str
    description: str | None = None
    image_url: str | None = None
    external_link: str | None = None
    event_tag_id: UUID | None = None
    start_time: str
    end_time: str

    # Recurrence fields are left loose and validated together by the service,
    # so every problem is reported at once
    pattern: str = RecurrencePattern.NONE.value
    weekdays: Any = Field(default=None, description="Day numbers, 0=Sunday .. 6=Saturday")
    start_date: str | None = Field(
        default=None, description="First occurrence; the event date for one-time events"
    )
    end_date: str | None = None
    max_occurrences: Any = None


class EventUpdate(SchemaBase):
    title: str | None = None
    description: str | None = None
    image_url: str | None = None
    external_link: str | None = None
    event_tag_id: UUID | None = None
    start_time: str | None = None
    end_time: str | None = None

    pattern: str | None = None
    weekdays: Any = None
    start_date: str | None = None
    end_date: str | None = None
    max_occurrences: Any = None

    force_regenerate: bool = False
    cancel_future_instances: bool | None = Field(
        default=None, description="Cancel (true) or restore (false) every future instance"
    )


class EventOut(SchemaBase):
    id: UUID
    venue_id: UUID
    title: str
    description: str | None = None
    image_url: str | None = None
    external_link: str | None = None
    event_tag_id: UUID | None = None
    start_time: dt.time
    end_time: dt.time
    crosses_midnight: bool
    pattern: RecurrencePattern
    weekdays: list[int] | None = None
    start_date: dt.date
    end_date: dt.date | None = None
    max_occurrences: int | None = None
    is_active: bool


class EventDetailOut(EventOut):
    recurrence_description: str
    upcoming_instances: list[EffectiveInstanceOut] = Field(default_factory=list)


class EventCreatedOut(SchemaBase):
    event_id: UUID
    recurrence_description: str
    instances_created: int = Field(ge=0)


class SyncSummaryOut(SchemaBase):
    deleted: int = 0
    inserted: int = 0
    overrides_cleared: dict[str, int] = Field(default_factory=dict)
    cancel_toggled: int = 0
    midnight_recomputed: int = 0


class EventUpdatedOut(SchemaBase):
    event: EventOut
    instances: SyncSummaryOut


class VenueEventsOut(SchemaBase):
    venue_id: UUID
    venue_name: str
    items: list[EventDetailOut]
    count: int = Field(ge=0)
