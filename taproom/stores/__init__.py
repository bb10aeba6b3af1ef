from __future__ import annotations

from taproom.stores.base import EventStore, InstanceQuery, InstanceStore, TagStore, VenueStore
from taproom.stores.sql import SqlEventStore, SqlInstanceStore, SqlTagStore, SqlVenueStore

__all__ = [
    "EventStore",
    "InstanceStore",
    "InstanceQuery",
    "TagStore",
    "VenueStore",
    "SqlEventStore",
    "SqlInstanceStore",
    "SqlTagStore",
    "SqlVenueStore",
]
