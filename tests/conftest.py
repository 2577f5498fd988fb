import os

# must be set before the package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256-signing"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from finance_tracker import database
from finance_tracker.mailer import get_mailer
from finance_tracker.main import app


class Outbox:
    """Stands in for the mailer and remembers every reset token it was handed."""

    def __init__(self):
        self.sent = []

    def send_password_reset(self, email, token):
        self.sent.append((email, token))


@pytest.fixture
def outbox():
    return Outbox()


@pytest.fixture
def client(outbox):
    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    app.dependency_overrides[get_mailer] = lambda: outbox
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def db_session(client):
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def register(client):
    """Sign up a user and return (user, auth headers)."""

    def _register(email="alice@example.com", password="s3cret-pass", name=None):
        response = client.post(
            "/api/auth/signup", json={"email": email, "password": password, "name": name}
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def auth_headers(register):
    return register()[1]
