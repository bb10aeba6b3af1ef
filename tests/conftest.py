from __future__ import annotations

import os
import tempfile
from datetime import date

import pytest
from fastapi.testclient import TestClient

# Point settings at a throwaway database before the app is imported
_DB_PATH = os.path.join(tempfile.gettempdir(), f"taproom_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", f"sqlite+pysqlite:///{_DB_PATH}")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("AUTO_CREATE_SCHEMA", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from taproom.core.clock import FixedClock, get_clock  # noqa: E402
from taproom.db import SessionLocal, engine  # noqa: E402
from taproom.main import app  # noqa: E402
from taproom.models import Base, EventTag, Venue  # noqa: E402

# A Sunday; events in the tests straddle it so both past and future instances exist
TODAY = date(2025, 6, 15)


@pytest.fixture(scope="session", autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def client(today: date) -> TestClient:
    app.dependency_overrides[get_clock] = lambda: FixedClock(today)
    yield TestClient(app)
    app.dependency_overrides.pop(get_clock, None)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def clean_db(schema):
    # Ensure a clean slate for each test
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def venue(db_session) -> Venue:
    row = Venue(name="The Crooked Tap", is_active=True)
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture
def tag(db_session) -> EventTag:
    row = EventTag(name="live_music")
    db_session.add(row)
    db_session.commit()
    return row
