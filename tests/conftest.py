import sys
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.db.base import Base
from app.db.models import HallBooking, HallOperator  # noqa: F401
from app.db.session import get_db
from app.main import app
from app.core.hall_locks import InMemoryHallLocks, hall_locks
from app.core.security import create_access_token
from app.repositories.booking_store import InMemoryBookingStore
from app.tasks.celery_app import celery_app

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

celery_app.conf.task_always_eager = True


def booking_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "hall_name": "H1",
        "booking_name": "Guest Lecture",
        "email": "alice@newhorizonindia.edu",
        "department": "CSE",
        "phone": "9876543210",
        "slot_title": "Seminar",
    }
    payload.update(overrides)
    return {key: value for key, value in payload.items() if value is not None}


@pytest.fixture()
def make_payload():
    return booking_payload


@pytest.fixture(autouse=True)
def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    hall_locks.reset()


@pytest.fixture()
def store() -> InMemoryBookingStore:
    return InMemoryBookingStore()


@pytest.fixture()
def locks() -> InMemoryHallLocks:
    return InMemoryHallLocks(wait_seconds=1.0)


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    token = create_access_token(subject="admin-1", role="admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def department_headers() -> dict[str, str]:
    token = create_access_token(subject="cse", role="department")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client() -> TestClient:
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
