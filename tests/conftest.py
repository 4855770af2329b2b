import os

# Set testing environment before the application settings are loaded
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from medibook.main import app
from medibook.core.database import get_db, get_redis, Base
from medibook.core.security import UserRole, get_password_hash
from medibook.models.doctor import Doctor
from medibook.models.user import User
from medibook.services.auth_service import AuthService

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "TestPassword123"


class FakeRedis:
    """In-memory stand-in for the few Redis commands the rate limiter uses."""

    def __init__(self):
        self.data = {}

    def setex(self, key, time, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])


def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(test_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis():
    redis_client = FakeRedis()
    app.dependency_overrides[get_redis] = lambda: redis_client
    yield redis_client
    app.dependency_overrides.pop(get_redis, None)


@pytest.fixture
def client(test_db, fake_redis):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


# Helpers for API tests

def register_and_login(client, email, role="patient", name="Test User"):
    """Register an account and return its Authorization header and user id."""
    response = client.post("/api/v1/auth/register", json={
        "email": email,
        "password": PASSWORD,
        "name": name,
        "role": role,
    })
    assert response.status_code == 201, response.text
    login = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert login.status_code == 200, login.text
    body = login.json()
    return {"Authorization": f"Bearer {body['access_token']}"}, body["user"]["id"]


def login_admin(client, email="admin@example.com"):
    db = TestingSessionLocal()
    try:
        user = AuthService(db).create_admin(email, PASSWORD, "Admin")
        user_id = user.id
    finally:
        db.close()
    login = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert login.status_code == 200, login.text
    return {"Authorization": f"Bearer {login.json()['access_token']}"}, user_id


def create_doctor_profile(client, headers, fee=150, **overrides):
    payload = {
        "specialization": "Cardiology",
        "experience": 10,
        "consultationFee": fee,
        "qualifications": [{"degree": "MD", "institution": "State University", "year": 2010}],
        "hospital": {"name": "City Hospital", "city": "Springfield", "state": "IL"},
        "about": "Heart specialist",
    }
    payload.update(overrides)
    response = client.post("/api/v1/doctors/profile", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["doctor"]


# Helpers for service tests (no HTTP, no bcrypt per user)

_HASH = None


def make_user(db, email, role=UserRole.PATIENT, name="Test User"):
    global _HASH
    if _HASH is None:
        _HASH = get_password_hash(PASSWORD)
    user = User(email=email, password_hash=_HASH, name=name, role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_doctor(db, email="doc@example.com", fee=150.0, name="Dr. X", availability=None):
    user = make_user(db, email, role=UserRole.DOCTOR, name=name)
    doctor = Doctor(
        user_id=user.id,
        specialization="Cardiology",
        experience=5,
        consultation_fee=fee,
        qualifications=[],
        availability=availability or [],
    )
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return doctor
