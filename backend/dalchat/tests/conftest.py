"""
Pytest fixtures shared across all test modules.
Uses an in-memory SQLite database with StaticPool so all connections
share a single in-memory DB, so no real Postgres or Redis required for tests.
"""

import os

# Set env vars BEFORE any app module is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["AUTO_CREATE_TABLES"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Import app modules AFTER env vars are set
from dalchat.database import Base, get_db  # noqa: E402
from dalchat.main import app  # noqa: E402
from dalchat.websocket.manager import manager  # noqa: E402

# Single shared in-memory SQLite engine. StaticPool ensures all
# connections share the same DB instance.
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    manager._subscriptions.clear()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def signup_user(client: TestClient, email="test@example.com", password="secret1", display_name="Tester"):
    return client.post(
        "/api/signup",
        json={"email": email, "password": password, "displayName": display_name},
    )


def auth_headers(client: TestClient, email="test@example.com", password="secret1", display_name="Tester"):
    resp = signup_user(client, email=email, password=password, display_name=display_name)
    assert resp.status_code == 200, f"Signup failed: {resp.json()}"
    token = resp.json()["token"]
    return {"Authorization": f"Bearer {token}"}


def user_id_of(client: TestClient, headers: dict) -> str:
    return client.get("/api/me", headers=headers).json()["user"]["id"]


def create_server(client: TestClient, headers: dict, name="Test Server") -> str:
    resp = client.post("/api/servers", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.json()
    return resp.json()["server"]["id"]
