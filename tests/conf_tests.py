import os
from datetime import datetime, time, timedelta
import pytest
import pytz
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

from app.config import settings
from app.main import app
from app.db import Base, get_db
from app.models.booking import Booking, BookingStatus
from app.models.room import Room
from app.models.user import User
from app.utils.auth import get_password_hash
from app.utils.timezones import to_utc_naive

# Test database setup
if not os.path.exists("./out"):
    os.makedirs("./out")

settings.UPLOAD_DIR = "./out/uploads"

SQLALCHEMY_DATABASE_URL = "sqlite:///./out/tests.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create test tables
Base.metadata.create_all(bind=engine)

ZONE = pytz.timezone("Asia/Jakarta")
TEST_ROOM_DATA = {"name": "Test Room", "capacity": 10, "location": "Floor 1"}
TEST_PASSWORD = "testpassword"


# Dependency override
def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db

client = TestClient(app)


def local_day(days_ahead=2):
    """A calendar date in the room's zone, far enough ahead to be bookable."""
    return (datetime.now(ZONE) + timedelta(days=days_ahead)).date()


def local_slot(start_hour, end_hour, days_ahead=2, end_days_ahead=None):
    """ISO strings without offset, read by the API in the room's time zone."""
    day = local_day(days_ahead)
    end_day = local_day(end_days_ahead) if end_days_ahead is not None else day
    start = datetime.combine(day, time(start_hour))
    end = datetime.combine(end_day, time(end_hour))
    return start.isoformat(), end.isoformat()


def stored_slot(start_hour, end_hour, days_ahead=2):
    """The naive UTC datetimes a local slot is stored as."""
    start, end = local_slot(start_hour, end_hour, days_ahead)
    return (
        to_utc_naive(datetime.fromisoformat(start), ZONE),
        to_utc_naive(datetime.fromisoformat(end), ZONE),
    )


# Fixtures
@pytest.fixture(autouse=True)
def clear_db():
    """Clear all data from all tables after each test"""
    with engine.connect() as conn:
        trans = conn.begin()
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        trans.commit()


@pytest.fixture
def test_db():
    """Provide a database session for testing"""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_next_user():
    """Helper function to generate unique usernames"""
    if not hasattr(get_next_user, "user_count"):
        get_next_user.user_count = 0
    get_next_user.user_count += 1
    return get_next_user.user_count


def create_user(db, role="user"):
    number = get_next_user()
    user = User(
        username=f"{role}_{number}",
        email=f"{role}_{number}@example.com",
        name=f"{role.title()} {number}",
        institution="Example University",
        hashed_password=get_password_hash(TEST_PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def login(user):
    login_response = client.post(
        "/auth/login",
        data={"username": user.username, "password": TEST_PASSWORD},
    )
    token = login_response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_user(test_db):
    """Fixture to create a regular user in the database"""
    return create_user(test_db)


@pytest.fixture
def other_user(test_db):
    return create_user(test_db)


@pytest.fixture
def admin_user(test_db):
    return create_user(test_db, role="admin")


@pytest.fixture
def auth_headers(test_user):
    """Fixture to get authentication headers for the regular user"""
    return login(test_user)


@pytest.fixture
def other_headers(other_user):
    return login(other_user)


@pytest.fixture
def admin_headers(admin_user):
    return login(admin_user)


@pytest.fixture
def test_room(test_db):
    room = Room(**TEST_ROOM_DATA)
    test_db.add(room)
    test_db.commit()
    test_db.refresh(room)
    return room


@pytest.fixture
def make_booking(test_db, test_room, test_user):
    """Factory inserting bookings directly, bypassing the API checks."""

    def _make(start_hour=10, end_hour=12, days_ahead=2, status=BookingStatus.PENDING, user=None, room=None, **fields):
        start, end = stored_slot(start_hour, end_hour, days_ahead)
        booking = Booking(
            room_id=(room or test_room).id,
            user_id=(user or test_user).id,
            activity_name=fields.pop("activity_name", "Team Meeting"),
            purpose=fields.pop("purpose", "Weekly sync"),
            start_time=fields.pop("start_time", start),
            end_time=fields.pop("end_time", end),
            participants_count=fields.pop("participants_count", 5),
            status=status.value,
            **fields,
        )
        test_db.add(booking)
        test_db.commit()
        test_db.refresh(booking)
        return booking

    return _make


def booking_form(room_id, start_hour=10, end_hour=12, days_ahead=2, **fields):
    start, end = local_slot(start_hour, end_hour, days_ahead)
    form = {
        "room_id": str(room_id),
        "activity_name": "Team Meeting",
        "purpose": "Weekly sync",
        "start_time": start,
        "end_time": end,
        "participants_count": "5",
    }
    form.update({key: str(value) for key, value in fields.items()})
    return form
