import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SEED_REFERENCE_DATA", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db.base import Base
from app.db.bootstrap import seed_days
from app.main import app
from app.models.day import Day


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    with TestingSessionLocal() as db:
        seed_days(db)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def register_and_login(client, *, name: str, email: str, role: str, password: str = "password123") -> dict:
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password, "role": role},
    )
    assert response.status_code == 201, response.text
    login = client.post("/api/auth/login", json={"email": email, "password": password})
    assert login.status_code == 200, login.text
    token = login.json()["data"]["accessToken"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client):
    return register_and_login(client, name="Admin User", email="admin@example.com", role="admin")


@pytest.fixture()
def student_headers(client):
    return register_and_login(client, name="Sam Student", email="sam@example.com", role="student")


@pytest.fixture()
def day_ids(db_session):
    days = db_session.execute(select(Day).order_by(Day.day_order)).scalars()
    return {day.name: day.id for day in days}


@pytest.fixture()
def create_unit(client, admin_headers):
    def _create(unit_code: str = "CS101", capacity: int = 30, **extra) -> dict:
        payload = {
            "unitCode": unit_code,
            "title": extra.pop("title", f"Unit {unit_code}"),
            "credits": extra.pop("credits", 6),
            "capacity": capacity,
            **extra,
        }
        response = client.post("/api/units", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture()
def create_time_slot(client, admin_headers):
    def _create(name: str, start: str, end: str) -> dict:
        response = client.post(
            "/api/timeslots",
            json={"name": name, "startTime": start, "endTime": end},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture()
def create_schedule(client, admin_headers):
    def _create(unit_id: int, time_slot_id: int, day_id: int, **extra) -> dict:
        payload = {
            "unitId": unit_id,
            "timeSlotId": time_slot_id,
            "dayId": day_id,
            "semester": extra.pop("semester", "Semester 1"),
            "academicYear": extra.pop("academicYear", 2026),
            **extra,
        }
        response = client.post("/api/schedules", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture()
def login_as(client):
    def _login(name: str, email: str, role: str = "student") -> dict:
        return register_and_login(client, name=name, email=email, role=role)

    return _login
