import os

# settings are read at import time, so the test database has to be chosen first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["SESSION_SECRET_KEY"] = "test-session-secret"
os.environ["ADMIN_EMAIL"] = "admin@university.edu"
os.environ["ADMIN_INITIAL_PASSWORD"] = "Admin123!"
os.environ["AUTH_DISABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from student_management.core.config import settings
from student_management.db.base import Base
from student_management.dependencies.db import SessionLocal, engine
from student_management.main import app
from student_management.services.bootstrap import seed_identity

ADMIN_EMAIL = "admin@university.edu"
ADMIN_PASSWORD = "Admin123!"
STUDENT_EMAIL = "ann@university.edu"
STUDENT_PASSWORD = "Student1!"


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_identity(db, settings.ADMIN_EMAIL, settings.ADMIN_INITIAL_PASSWORD)
    finally:
        db.close()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # the context manager runs the lifespan (settings check and bootstrap)
    with TestClient(app) as test_client:
        yield test_client


def login(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def admin_headers(client):
    tokens = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def student_headers(client):
    response = client.post(
        "/api/auth/register",
        json={"email": STUDENT_EMAIL, "password": STUDENT_PASSWORD, "confirm_password": STUDENT_PASSWORD}
    )
    assert response.status_code == 201, response.text
    tokens = login(client, STUDENT_EMAIL, STUDENT_PASSWORD)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def make_course(client, admin_headers):
    def _make_course(code="CS101", title="Intro to Programming", credits=3):
        response = client.post(
            "/api/courses",
            json={"code": code, "title": title, "credits": credits},
            headers=admin_headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make_course


@pytest.fixture
def make_student(client, admin_headers):
    def _make_student(full_name="Ann Lee", student_number="S0001", email="ann.lee@university.edu", user_id=None):
        response = client.post(
            "/api/students",
            json={"full_name": full_name, "student_number": student_number, "email": email, "user_id": user_id},
            headers=admin_headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make_student
