"""
Test configuration and fixtures for the railway booking service.
"""
import itertools
import os
import tempfile
from datetime import time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

# Point the app at a throwaway SQLite file before anything imports the engine.
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "railway_booking_test.db")
if os.path.exists(TEST_DB_PATH):
    os.remove(TEST_DB_PATH)

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DB_CONNECT_MAX_RETRIES"] = "1"

from src.main import app
from src.infrastructure.db.models import Base, Booking, Passenger, Train, User
from src.infrastructure.db.session import engine, get_db_session

Base.metadata.create_all(bind=engine)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def cleanup_db():
    """Clean up database after each test."""
    yield
    with engine.connect() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
        conn.commit()


@pytest.fixture
def make_train():
    counter = itertools.count(1)

    def _make(fare="500.00", total_seats=10, available_seats=None, **overrides) -> str:
        number = next(counter)
        fields = {
            "train_name": f"Test Express {number}",
            "train_number": f"9{number:04d}",
            "source": "New Delhi",
            "destination": "Howrah Junction",
            "departure_time": time(16, 50),
            "arrival_time": time(9, 55),
            "duration": "17h 05m",
            "class_type": "Sleeper",
            "fare": Decimal(fare),
            "total_seats": total_seats,
            "available_seats": total_seats if available_seats is None else available_seats,
        }
        fields.update(overrides)
        with get_db_session() as db:
            train = Train(**fields)
            db.add(train)
            db.flush()
            return train.id

    return _make


@pytest.fixture
def make_user():
    counter = itertools.count(1)

    def _make(email=None) -> str:
        number = next(counter)
        with get_db_session() as db:
            user = User(
                name=f"Traveller {number}",
                email=email or f"traveller{number}@example.com",
                password_hash="not-a-real-hash",
            )
            db.add(user)
            db.flush()
            return user.id

    return _make


@pytest.fixture
def train_state():
    """Read a train's seat counters in a short-lived session."""

    def _read(train_id: str) -> dict:
        with get_db_session() as db:
            train = db.get(Train, train_id)
            return {
                "available_seats": train.available_seats,
                "total_seats": train.total_seats,
                "fare": train.fare,
            }

    return _read


@pytest.fixture
def row_counts():
    def _count() -> dict:
        with get_db_session() as db:
            return {
                "bookings": db.query(Booking).count(),
                "passengers": db.query(Passenger).count(),
            }

    return _count


@pytest.fixture
def register_user(client):
    counter = itertools.count(1)

    def _register(email=None, password="s3cret-pass") -> dict:
        number = next(counter)
        response = client.post(
            "/api/auth/register",
            json={
                "name": f"Rider {number}",
                "email": email or f"rider{number}@example.com",
                "password": password,
                "contact_number": "9876543210",
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "user": body["user"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _register
