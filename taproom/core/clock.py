from __future__ import annotations

from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from taproom.core.config import settings


class Clock(Protocol):
    def today(self) -> date:
        """Return the current calendar date."""


class SystemClock:
    def __init__(self, tz: str = "UTC") -> None:
        self._tz = ZoneInfo(tz)

    def today(self) -> date:
        return datetime.now(self._tz).date()


class FixedClock:
    """Clock pinned to one date; used by tests and backfills."""

    def __init__(self, value: date) -> None:
        self.value = value

    def today(self) -> date:
        return self.value


def get_clock() -> Clock:
    return SystemClock(settings.timezone)
