from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from taproom.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class EventTag(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "event_tags"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
