# tests/conftest.py
# -------------------------------------------------------------------------------------
# Shared pytest fixtures.
# - Environment is set BEFORE importing rsvp_service (db.py and auth.py read it at import).
# - In-memory SQLite shared across threads (StaticPool) so TestClient requests and the
#   test body see the same data.
# - `client` overrides the get_db dependency; `admin_client` is already logged in.
# -------------------------------------------------------------------------------------

import os

os.environ.setdefault("FORCE_DB", "sqlite")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_PASSWORD"] = "let-me-in"
os.environ["COOKIE_SECURE"] = "0"                      # TestClient talks plain http.
os.environ["DRY_RUN"] = "1"
os.environ["RSVP_RL_MAX"] = "1000"
os.environ["ADMIN_LOGIN_RL_MAX"] = "1000"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from rsvp_service import rate_limit  # noqa: E402
from rsvp_service.db import Base, get_db  # noqa: E402
from rsvp_service.main import app  # noqa: E402
from rsvp_service.models import Guest, RSVP, AttendanceTypeEnum  # noqa: E402

ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def _reset_rate_limit():
    rate_limit.reset()
    yield
    rate_limit.reset()


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(client):
    resp = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return client


@pytest.fixture
def make_guest(db_session):
    """Factory: make_guest("Ana", "Cruz", is_inc=True) → persisted Guest."""
    def _make(first_name="Ana", last_name="Cruz", enabled=True, is_inc=False):
        guest = Guest(first_name=first_name, last_name=last_name, enabled=enabled, is_inc=is_inc)
        db_session.add(guest)
        db_session.commit()
        db_session.refresh(guest)
        return guest
    return _make


@pytest.fixture
def make_rsvp(db_session):
    """Factory for RSVPs inserted directly (bypassing the admission checks)."""
    def _make(first_name="Ana", last_name="Cruz", email=None, attending=True,
              attendance_type="both", reminder_sent=False):
        rsvp = RSVP(
            first_name=first_name,
            last_name=last_name,
            email=email or f"{first_name}.{last_name}@example.com".lower(),
            attending=attending,
            attendance_type=AttendanceTypeEnum(attendance_type),
            reminder_sent=reminder_sent,
        )
        db_session.add(rsvp)
        db_session.commit()
        db_session.refresh(rsvp)
        return rsvp
    return _make
