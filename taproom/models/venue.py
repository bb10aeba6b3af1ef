from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from taproom.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Venue(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "venues"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
