from taproom.api.v1.schemas.events import (
    EventCreate,
    EventCreatedOut,
    EventDetailOut,
    EventOut,
    EventUpdate,
    EventUpdatedOut,
    SyncSummaryOut,
    VenueEventsOut,
)
from taproom.api.v1.schemas.instances import (
    EffectiveInstanceOut,
    InstanceListOut,
    InstanceUpdate,
)

__all__ = [
    "EventCreate",
    "EventCreatedOut",
    "EventDetailOut",
    "EventOut",
    "EventUpdate",
    "EventUpdatedOut",
    "SyncSummaryOut",
    "VenueEventsOut",
    "EffectiveInstanceOut",
    "InstanceListOut",
    "InstanceUpdate",
]
