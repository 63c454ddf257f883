"""Pytest fixtures: file-backed SQLite database, fresh per test."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from eventhub.database import Base, get_db
from eventhub.main import app
from eventhub.rate_limit import limiter
from eventhub.services.cache import get_cache
from eventhub.services.user_service import make_user_admin

# Import all models so they register with Base.metadata
from eventhub.models.user import User  # noqa: F401
from eventhub.models.event import Event  # noqa: F401
from eventhub.models.attendance import Attendance  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # WAL lets a second session read while another holds a write
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_shared_state():
    """The cache and rate limiter are process-wide; start every test empty."""
    get_cache().clear()
    limiter.reset()
    yield
    get_cache().clear()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def future(hours: float = 1) -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=hours)


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register_user(client: TestClient, name: str = "Test User", email: Optional[str] = None) -> dict:
    """POST /api/auth/register and return response JSON (includes access_token)."""
    email = email or f"{name.lower().replace(' ', '.')}@example.com"
    resp = client.post("/api/auth/register", json={
        "name": name,
        "email": email,
        "password": "s3cret-password",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def register_admin(client: TestClient, db, name: str = "Admin User") -> dict:
    """Register a user and promote them; the existing token picks up the role on the next request."""
    user = register_user(client, name)
    make_user_admin(db, user["user_id"])
    return user


def create_event(
    client: TestClient,
    token: str,
    title: str = "Team Offsite",
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    **extra,
) -> dict:
    """POST /api/events and return response JSON."""
    start = start or future(1)
    end = end or start + timedelta(hours=1)
    payload = {
        "title": title,
        "start_time": start.isoformat(),
        "end_time": end.isoformat(),
        **extra,
    }
    resp = client.post("/api/events", json=payload, headers=auth_headers(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


def rsvp(client: TestClient, token: str, event_id: str, status: str = "GOING", user_id: Optional[str] = None):
    payload = {"event_id": event_id, "status": status}
    if user_id:
        payload["user_id"] = user_id
    return client.post("/api/events/attendance", json=payload, headers=auth_headers(token))
