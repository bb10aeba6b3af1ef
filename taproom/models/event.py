from __future__ import annotations

import enum
import uuid
from datetime import date, time

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, Date, Enum, ForeignKey, Integer, String, Text, Time, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from taproom.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class RecurrencePattern(str, enum.Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Event(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Master event: the template every materialized instance falls back to."""

    __tablename__ = "events"
    __table_args__ = (
        sa.Index("ix_events_venue_id", "venue_id"),
        sa.Index("ix_events_start_date", "start_date"),
    )

    venue_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    external_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    event_tag_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("event_tags.id", ondelete="SET NULL"), nullable=True
    )
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    crosses_midnight: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    pattern: Mapped[RecurrencePattern] = mapped_column(
        Enum(
            RecurrencePattern,
            name="recurrence_pattern",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=RecurrencePattern.NONE,
    )
    # Sunday=0 .. Saturday=6, only meaningful for weekly rules
    weekdays: Mapped[list[int] | None] = mapped_column(JSON, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    max_occurrences: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
