from taproom.models.base import Base
from taproom.models.event import Event, RecurrencePattern
from taproom.models.event_instance import EventInstance
from taproom.models.event_tag import EventTag
from taproom.models.venue import Venue

__all__ = ["Base", "Venue", "EventTag", "Event", "EventInstance", "RecurrencePattern"]
