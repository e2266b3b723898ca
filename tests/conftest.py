"""Pytest configuration and fixtures."""

import os

# Test settings must be in place before anything reads the cached settings
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET"] = "test-secret"  # noqa: S105
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tasktracker.app import create_app  # noqa: E402
from tasktracker.config import get_settings  # noqa: E402
from tasktracker.database import Base, Database  # noqa: E402
from tasktracker.services.auth import get_password_context  # noqa: E402

get_settings.cache_clear()
get_password_context.cache_clear()

TEST_PASSWORD = "testpass123"  # noqa: S105


class AuthHeaders(dict):
    """Dict subclass that also stores the registered user's details."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email
        self.token = self.get("Authorization", "").removeprefix("Bearer ")


@pytest.fixture(scope="session")
def database(tmp_path_factory):
    """Create the test database schema once for the session."""
    url = os.getenv("TEST_DATABASE_URL") or f"sqlite:///{tmp_path_factory.mktemp('db') / 'test.db'}"
    database = Database(url)
    database.create_all()
    yield database
    database.drop_all()
    database.dispose()


@pytest.fixture(scope="function", autouse=True)
def db(database):
    """Create a fresh database session for each test with cleanup."""
    session = database.session()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture(scope="function")
def client(app):
    """Create a test client bound to the test database."""
    with TestClient(app) as test_client:
        yield test_client


def _register(client, name: str, email: str, password: str = TEST_PASSWORD) -> AuthHeaders:
    response = client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return AuthHeaders(
        {"Authorization": f"Bearer {data['token']}"},
        user_id=data["user"]["id"],
        email=data["user"]["email"],
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return _register(client, "Test User", "test@example.com")


@pytest.fixture
def other_auth_headers(client):
    """A second, unrelated user."""
    return _register(client, "Other User", "other@example.com")


@pytest.fixture
def create_task(client, auth_headers):
    """Factory creating tasks for the default user."""

    def _create(headers=None, **fields):
        payload = {"title": "Task"}
        payload.update(fields)
        response = client.post("/api/tasks", headers=headers or auth_headers, json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]["task"]

    return _create


@pytest.fixture
def register_user(client):
    """Factory registering additional users."""

    def _create(name: str, email: str, password: str = TEST_PASSWORD) -> AuthHeaders:
        return _register(client, name, email, password)

    return _create
