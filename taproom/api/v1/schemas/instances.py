from __future__ import annotations

import datetime as dt
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SchemaBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="ignore")


class InstanceUpdate(SchemaBase):
    date: str | None = None
    # bool or the literal strings "true"/"false"; anything else is rejected by the service
    is_cancelled: Any = None
    custom_title: str | None = None
    custom_description: str | None = None
    custom_start_time: str | None = None
    custom_end_time: str | None = None
    custom_image_url: str | None = None
    custom_external_link: str | None = None
    custom_tag_id: str | None = None


class EffectiveInstanceOut(SchemaBase):
    instance_id: UUID
    event_id: UUID
    venue_id: UUID
    date: dt.date
    is_cancelled: bool
    title: str
    description: str | None = None
    start_time: dt.time
    end_time: dt.time
    image_url: str | None = None
    external_link: str | None = None
    event_tag_id: UUID | None = None
    crosses_midnight: bool
    overridden_fields: list[str] = Field(default_factory=list)


class InstanceListOut(SchemaBase):
    items: list[EffectiveInstanceOut]
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total: int = Field(ge=0)
