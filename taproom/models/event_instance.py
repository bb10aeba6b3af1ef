from __future__ import annotations

import datetime as dt
import uuid

import sqlalchemy as sa
from sqlalchemy import Boolean, Date, ForeignKey, String, Text, Time, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from taproom.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class EventInstance(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "event_instances"
    __table_args__ = (
        UniqueConstraint("event_id", "date", name="uq_event_instance_event_date"),
        sa.Index("ix_event_instances_date", "date"),
    )

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Per-occurrence overrides; NULL means "use the master's value"
    custom_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    custom_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    custom_start_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    custom_end_time: Mapped[dt.time | None] = mapped_column(Time, nullable=True)
    custom_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    custom_external_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    custom_tag_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("event_tags.id", ondelete="SET NULL"), nullable=True
    )

    crosses_midnight: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
