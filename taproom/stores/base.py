from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from taproom.models import Event, EventInstance, Venue


class EventStore(ABC):
    @abstractmethod
    def get(self, event_id: uuid.UUID, *, for_update: bool = False) -> Event | None:
        """Return an active event, optionally locking its row."""

    @abstractmethod
    def add(self, event: Event) -> Event:
        """Stage a new event and assign its id."""

    @abstractmethod
    def update(self, event: Event, changes: dict[str, Any]) -> Event:
        """Apply only the given fields to the event."""

    @abstractmethod
    def list_for_venue(self, venue_id: uuid.UUID, limit: int) -> Sequence[Event]:
        """Return active events of a venue, newest start_date first."""


@dataclass(frozen=True)
class InstanceQuery:
    venue_id: uuid.UUID | None = None
    event_id: uuid.UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    tag_id: uuid.UUID | None = None
    include_cancelled: bool = False
    offset: int = 0
    limit: int | None = None


class InstanceStore(ABC):
    @abstractmethod
    def insert(self, event_id: uuid.UUID, day: date, crosses_midnight: bool) -> EventInstance:
        """Insert one occurrence; raises ConflictError on a duplicate date."""

    def insert_many(
        self, event_id: uuid.UUID, days: Iterable[date], crosses_midnight: bool
    ) -> list[EventInstance]:
        return [self.insert(event_id, day, crosses_midnight) for day in days]

    @abstractmethod
    def get(self, instance_id: uuid.UUID) -> EventInstance | None:
        """Return an instance whose master event is active."""

    @abstractmethod
    def update(self, instance: EventInstance, changes: dict[str, Any]) -> EventInstance:
        """Apply changes; raises ConflictError when a moved date collides."""

    @abstractmethod
    def delete_from(self, event_id: uuid.UUID, day: date) -> int:
        """Delete every instance of the event dated on or after ``day``."""

    @abstractmethod
    def select(
        self,
        event_id: uuid.UUID,
        date_from: date | None = None,
        date_to: date | None = None,
        cancelled: bool | None = None,
        limit: int | None = None,
    ) -> Sequence[EventInstance]:
        """Return instances of one event ordered by date."""

    @abstractmethod
    def clear_overrides(self, event_id: uuid.UUID, day: date, columns: Sequence[str]) -> int:
        """Null the given override columns on instances dated on or after ``day``."""

    @abstractmethod
    def set_cancelled(self, event_id: uuid.UUID, day: date, cancelled: bool) -> int:
        """Set ``is_cancelled`` on instances dated on or after ``day``."""

    @abstractmethod
    def search(self, query: InstanceQuery) -> tuple[list[tuple[EventInstance, Event]], int]:
        """Return (instance, master) pairs for a page plus the total match count."""


class TagStore(ABC):
    @abstractmethod
    def exists(self, tag_id: uuid.UUID) -> bool:
        """Return whether the tag exists."""


class VenueStore(ABC):
    @abstractmethod
    def get_active(self, venue_id: uuid.UUID) -> Venue | None:
        """Return the venue if it exists and is active."""
