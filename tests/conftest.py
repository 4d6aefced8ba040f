from __future__ import annotations

import os


# The app validates its settings at import; give it a complete, local-only
# configuration before anything under test is imported.
os.environ["AUDIX_ADMIN_PASSWORD"] = "unit-test-admin-password"
os.environ["SESSION_SECRET"] = "unit-test-session-secret"
os.environ["AUDIX_USER_BASE_URL"] = "http://live.invalid"
os.environ["AUDIX_LIVE_TOKEN"] = "unit-test-live-token"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["METRICS_TRACEMALLOC"] = "false"

import pytest
from fastapi.testclient import TestClient

import database
from models import Base

ADMIN_PASSWORD = os.environ["AUDIX_ADMIN_PASSWORD"]


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=database.engine)
    Base.metadata.create_all(bind=database.engine)
    yield


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app():
    from main import app as admin_app

    return admin_app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def _login(client: TestClient, remember: bool = False):
    data = {"password": ADMIN_PASSWORD}
    if remember:
        data["remember"] = "1"
    return client.post("/admin/login", data=data, follow_redirects=False)


@pytest.fixture
def login():
    return _login


@pytest.fixture
def admin_client(client: TestClient) -> TestClient:
    response = _login(client)
    assert response.status_code == 303
    return client
