# backend/tests/conftest.py
"""
Pytest configuration.

Every test gets a fresh in-memory SQLite database. Services under test run
on a frozen clock (Monday 2026-03-02 08:00 UTC) so lead-time and notice rules
are deterministic; route tests go through the real clock and build their
dates relative to it.
"""

import os

# Set test configuration BEFORE any app imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-classbook"
os.environ["CALENDAR_FAKE"] = "true"
os.environ["SCHOOL_TIMEZONE"] = "UTC"
os.environ["CLOSED_WEEKDAYS"] = ""

from datetime import datetime, time, timedelta
from typing import Callable, Optional

from fastapi.testclient import TestClient
import pytest
import pytz
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies.database import get_db
from app.api.dependencies.services import get_calendar_gateway
from app.auth import create_access_token
from app.core.enums import BookingStatus, RoleName
from app.core.timezone_utils import utc_now
from app.core.weekdays import day_of_week
from app.database import Base
from app.integrations.calendar_client import FakeCalendarClient
from app.main import app
from app.models import AttendanceLog, Availability, Booking, Package, StudentStats, User  # noqa: F401
from app.principal import AuthenticatedUser
from app.services.calendar_gateway import CalendarGateway

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=pytz.UTC)
# Monday one week after NOW; the default teacher window covers 09:00-11:00
NEXT_MONDAY_9 = datetime(2026, 3, 9, 9, 0, tzinfo=pytz.UTC)


class FrozenClock:
    """Callable clock handed to services; tests move it with ``advance``."""

    def __init__(self, now: datetime = NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current = self.current + timedelta(**kwargs)

    def set(self, value: datetime) -> None:
        self.current = value


# ============================================================================
# Database
# ============================================================================


@pytest.fixture(scope="function")
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine):
    """Create a new database session for each test."""
    TestSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestSessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def fake_calendar() -> FakeCalendarClient:
    return FakeCalendarClient()


@pytest.fixture
def calendar_gateway(fake_calendar: FakeCalendarClient) -> CalendarGateway:
    return CalendarGateway(fake_calendar)


# ============================================================================
# Factories
# ============================================================================


def make_user(db: Session, role: RoleName, name: Optional[str] = None) -> User:
    user = User(
        email=f"{role.value}.{os.urandom(4).hex()}@example.com",
        name=name or f"Test {role.value.title()}",
        role=role.value,
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


def make_window(
    db: Session,
    teacher: User,
    day_of_week: int = 1,
    start_time: str = "09:00",
    end_time: str = "11:00",
    is_active: bool = True,
) -> Availability:
    window = Availability(
        teacher_id=teacher.id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        is_active=is_active,
    )
    db.add(window)
    db.commit()
    return window


def make_package(
    db: Session,
    student: User,
    total: int = 10,
    used: int = 0,
    remaining: Optional[int] = None,
    valid_from: datetime = NOW - timedelta(days=30),
    valid_until: datetime = NOW + timedelta(days=60),
    created_at: Optional[datetime] = None,
) -> Package:
    package = Package(
        user_id=student.id,
        total_lessons=total,
        used_lessons=used,
        remaining_lessons=total - used if remaining is None else remaining,
        valid_from=valid_from,
        valid_until=valid_until,
    )
    if created_at is not None:
        package.created_at = created_at
    db.add(package)
    db.commit()
    return package


def make_booking(
    db: Session,
    student: User,
    teacher: User,
    scheduled_at: datetime = NEXT_MONDAY_9,
    status: BookingStatus = BookingStatus.SCHEDULED,
    topic_id: str = "grammar-basics",
    **fields,
) -> Booking:
    booking = Booking(
        student_id=student.id,
        teacher_id=teacher.id,
        topic_id=topic_id,
        scheduled_at=scheduled_at,
        status=status.value,
        **fields,
    )
    db.add(booking)
    db.commit()
    return booking


def actor_for(user: User) -> AuthenticatedUser:
    return AuthenticatedUser(user_id=user.id, role=RoleName(user.role))


def auth_headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def teacher(db: Session) -> User:
    return make_user(db, RoleName.TEACHER, name="Ana Teacher")


@pytest.fixture
def other_teacher(db: Session) -> User:
    return make_user(db, RoleName.TEACHER, name="Bruno Teacher")


@pytest.fixture
def student(db: Session) -> User:
    return make_user(db, RoleName.STUDENT, name="Carla Student")


@pytest.fixture
def other_student(db: Session) -> User:
    return make_user(db, RoleName.STUDENT, name="Dario Student")


@pytest.fixture
def admin(db: Session) -> User:
    return make_user(db, RoleName.ADMIN, name="Admin User")


@pytest.fixture
def monday_window(db: Session, teacher: User) -> Availability:
    """Teacher available Mondays 09:00-11:00 (two one-hour slots)."""
    return make_window(db, teacher, day_of_week=1, start_time="09:00", end_time="11:00")


@pytest.fixture
def package(db: Session, student: User) -> Package:
    return make_package(db, student, total=10)


# ============================================================================
# HTTP client
# ============================================================================


@pytest.fixture
def client(db: Session, calendar_gateway: CalendarGateway):
    """Create a test client bound to the test database and fake calendar."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_calendar_gateway] = lambda: calendar_gateway

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def service_factory(db: Session, clock: FrozenClock) -> Callable:
    """Build any service on the test session and frozen clock."""

    def _build(service_cls, *args, **kwargs):
        return service_cls(db, *args, clock=clock, **kwargs)

    return _build


# ============================================================================
# Wall-clock fixtures for route tests (services there use the real clock)
# ============================================================================


def next_week_class_start(days_ahead: int = 7) -> datetime:
    """09:00 UTC on the date ``days_ahead`` from today."""
    day = (utc_now() + timedelta(days=days_ahead)).date()
    return datetime.combine(day, time(9, 0), tzinfo=pytz.UTC)


@pytest.fixture
def class_start(db: Session, teacher: User, student: User) -> datetime:
    """A bookable 09:00 slot a week out, with a funded student."""
    start = next_week_class_start()
    make_window(db, teacher, day_of_week=int(day_of_week(start)), start_time="09:00", end_time="11:00")
    make_package(
        db,
        student,
        total=10,
        valid_from=utc_now() - timedelta(days=1),
        valid_until=utc_now() + timedelta(days=60),
    )
    return start
