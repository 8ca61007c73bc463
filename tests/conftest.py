import os

# Set before the application settings are imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from telehealth.main import app
from telehealth.core.database import get_db, get_redis, Base
from telehealth.core.security import UserRole, get_password_hash
from telehealth.models.user import User

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

class InMemoryRedis:
    """Counter store standing in for Redis in rate-limit checks."""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, seconds, value):
        self.store[key] = str(value)

    def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])

app.dependency_overrides[get_db] = override_get_db

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def fake_redis():
    redis_stub = InMemoryRedis()
    app.dependency_overrides[get_redis] = lambda: redis_stub
    yield redis_stub
    app.dependency_overrides.pop(get_redis, None)

@pytest.fixture
def client(test_db, fake_redis):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

def next_weekday(offset_days: int = 1) -> date:
    """First Monday-Friday date at least offset_days from today."""
    day = date.today() + timedelta(days=offset_days)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day

def register(client, email, role="patient", full_name=None, password="TestPassword123", **extra):
    payload = {
        "email": email,
        "password": password,
        "full_name": full_name or email.split("@")[0].title(),
        "role": role,
    }
    payload.update(extra)
    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()

def login(client, email, password="TestPassword123"):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()

def auth_headers(client, email, role="patient", **extra):
    register(client, email, role=role, **extra)
    token = login(client, email)["access_token"]
    return {"Authorization": f"Bearer {token}"}

def create_admin(email="admin@example.com", password="AdminPassword123"):
    db = TestingSessionLocal()
    try:
        admin = User(
            email=email,
            password_hash=get_password_hash(password),
            full_name="Site Admin",
            role=UserRole.ADMIN,
            is_active=True,
            is_verified=True,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin.id
    finally:
        db.close()

@pytest.fixture
def patient_headers(client):
    return auth_headers(client, "patient@example.com", full_name="Pat Patient")

@pytest.fixture
def doctor_headers(client):
    return auth_headers(
        client, "doctor@example.com", role="doctor",
        full_name="Dana Doctor", specialisation="Cardiology"
    )

@pytest.fixture
def admin_headers(client):
    create_admin()
    token = login(client, "admin@example.com", "AdminPassword123")["access_token"]
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def doctor_id(client, doctor_headers):
    response = client.get("/api/v1/doctors/me/profile", headers=doctor_headers)
    return response.json()["id"]

@pytest.fixture
def booked_appointment(client, patient_headers, doctor_id):
    """A confirmed appointment between the patient and doctor fixtures."""
    response = client.post(
        "/api/v1/appointments",
        json={
            "doctor_id": doctor_id,
            "scheduled_date": next_weekday(7).isoformat(),
            "scheduled_time": "10:00",
            "reason": "Chest tightness",
        },
        headers=patient_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
