from __future__ import annotations

import os

# Must be set before the application modules build their engine/settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULE_TIMEZONE", "UTC")
os.environ.setdefault("CHANGE_SINK", "websocket")

from datetime import datetime
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from booking_calendar.api.deps import get_change_sink
from booking_calendar.core.security import create_access_token
from booking_calendar.db import get_session
from booking_calendar.main import app
from booking_calendar.models import AvailabilityWindow, Booking, User
from booking_calendar.models.user import ROLE_ADMIN, ROLE_USER
from booking_calendar.schemas import ChangeEvent


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """Naive UTC instant in June 2024."""
    return datetime(2024, 6, day, hour, minute)


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[ChangeEvent] = []

    def publish(self, event: ChangeEvent) -> None:
        self.events.append(event)


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine) -> Iterator[Session]:
    with Session(engine) as session:
        yield session


@pytest.fixture(name="sink")
def sink_fixture() -> RecordingSink:
    return RecordingSink()


@pytest.fixture(name="client")
def client_fixture(session, sink) -> Iterator[TestClient]:
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_change_sink] = lambda: sink
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(name="live_client")
def live_client_fixture(session) -> Iterator[TestClient]:
    """Client running the app lifespan, so the real WebSocket sink is used."""
    app.dependency_overrides[get_session] = lambda: session
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def make_user(session: Session, email: str, role: str = ROLE_USER) -> User:
    user = User(
        email=email,
        full_name=email.split("@")[0].title(),
        hashed_password="not-a-real-hash",
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def admin(session) -> User:
    return make_user(session, "admin@example.com", ROLE_ADMIN)


@pytest.fixture
def user(session) -> User:
    return make_user(session, "alice@example.com")


@pytest.fixture
def other_user(session) -> User:
    return make_user(session, "bob@example.com")


def add_window(
    session: Session,
    owner: User,
    starts_at: datetime,
    ends_at: datetime,
    recurring: bool = False,
    days_of_week: list[int] | None = None,
) -> AvailabilityWindow:
    window = AvailabilityWindow(
        owner_id=owner.id,
        starts_at=starts_at,
        ends_at=ends_at,
        recurring=recurring,
        days_of_week=days_of_week or [],
    )
    session.add(window)
    session.commit()
    session.refresh(window)
    return window


def add_booking(
    session: Session,
    owner: User,
    starts_at: datetime,
    ends_at: datetime,
    status: str = "pending",
    title: str = "Existing",
) -> Booking:
    booking = Booking(
        user_id=owner.id,
        title=title,
        starts_at=starts_at,
        ends_at=ends_at,
        status=status,
    )
    session.add(booking)
    session.commit()
    session.refresh(booking)
    return booking


@pytest.fixture
def workday_window(session, admin) -> AvailabilityWindow:
    """One-time window 09:00-17:00 on Monday 2024-06-10."""
    return add_window(session, admin, at(10, 9), at(10, 17))
