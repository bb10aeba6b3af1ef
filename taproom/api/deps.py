from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from taproom.core.clock import Clock, get_clock
from taproom.db import get_db

DBSession = Annotated[Session, Depends(get_db)]


def get_today(clock: Annotated[Clock, Depends(get_clock)]) -> date:
    # Captured once per request so every step agrees on past vs future
    return clock.today()


Today = Annotated[date, Depends(get_today)]
