"""End-to-end tests for the Python client and its state stores.

The FastAPI TestClient is an httpx.Client, so it is handed to the API client
as its transport.
"""

import pytest

from tasktracker.client import ApiError, AuthStore, TaskStore, TaskTrackerClient


class RecordingNotifier:
    def __init__(self) -> None:
        self.notices: list[tuple[str, str]] = []

    def __call__(self, level: str, message: str) -> None:
        self.notices.append((level, message))

    @property
    def errors(self) -> list[str]:
        return [message for level, message in self.notices if level == "error"]


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def api(client, notifier):
    return TaskTrackerClient(http=client, notifier=notifier)


@pytest.fixture
def auth_store(api):
    return AuthStore(api)


@pytest.fixture
def task_store(api, auth_store):
    auth_store.register("Client User", "client@example.com", "clientpass")
    return TaskStore(api)


class TestAuthStore:
    """Tests for the identity store."""

    def test_register(self, auth_store, api, notifier):
        auth_store.save_draft("register", {"name": "Client User"})
        user = auth_store.register("Client User", "Client@Example.com", "clientpass")

        assert user["email"] == "client@example.com"
        assert auth_store.is_authenticated is True
        assert auth_store.is_loading is False
        assert api.token == auth_store.token
        assert auth_store.get_draft("register") == {}
        assert ("success", "Registration successful!") in notifier.notices

    def test_login_failure_clears_state(self, auth_store, notifier):
        auth_store.register("Client User", "client@example.com", "clientpass")

        with pytest.raises(ApiError) as exc_info:
            auth_store.login("client@example.com", "wrong-password")

        assert exc_info.value.status_code == 401
        assert auth_store.is_authenticated is False
        assert notifier.errors == ["Invalid credentials"]

    def test_initialize_with_stored_token(self, client, auth_store):
        auth_store.register("Client User", "client@example.com", "clientpass")

        restored = AuthStore(TaskTrackerClient(http=client, token=auth_store.token))
        assert restored.initialize() is True
        assert restored.user["email"] == "client@example.com"

    def test_initialize_with_bad_token(self, client, notifier):
        store = AuthStore(TaskTrackerClient(http=client, token="bogus", notifier=notifier))
        assert store.initialize() is False
        assert store.is_authenticated is False
        assert store.client.token is None

    def test_initialize_without_token(self, auth_store):
        assert auth_store.initialize() is False

    def test_logout_always_resets(self, auth_store, api):
        auth_store.register("Client User", "client@example.com", "clientpass")
        api.token = "stale-token"

        auth_store.logout()

        assert auth_store.is_authenticated is False
        assert api.token is None

    def test_profile_and_password(self, auth_store, api):
        auth_store.register("Client User", "client@example.com", "clientpass")

        user = auth_store.update_profile(name="Renamed")
        assert user["name"] == "Renamed"

        auth_store.change_password("clientpass", "newpass123")
        api.token = None
        assert auth_store.login("client@example.com", "newpass123")["name"] == "Renamed"


class TestTaskStore:
    """Tests for the task list store."""

    def test_create_prepends(self, task_store):
        first = task_store.create_task({"title": "First"})
        second = task_store.create_task({"title": "Second"})
        assert [t["id"] for t in task_store.tasks] == [second["id"], first["id"]]

    def test_get_tasks_uses_stored_filters(self, task_store):
        task_store.create_task({"title": "Plain"})
        task_store.create_task({"title": "Flagged", "isImportant": True})

        task_store.set_filters({"isImportant": True, "search": ""})
        assert task_store.get_tasks() is True
        assert [t["title"] for t in task_store.tasks] == ["Flagged"]
        assert task_store.is_initialized is True

        task_store.clear_filters()
        task_store.get_tasks()
        assert len(task_store.tasks) == 2

    def test_get_tasks_short_circuits_while_loading(self, task_store):
        task_store.loading["tasks"] = True
        assert task_store.get_tasks() is False
        assert task_store.is_initialized is False

    def test_update_toggle_and_delete(self, task_store, notifier):
        task = task_store.create_task({"title": "Original"})
        other = task_store.create_task({"title": "Other"})

        task_store.update_task(task["id"], {"title": "Edited"})
        toggled = task_store.toggle_task_status(task["id"])
        assert toggled["status"] == "completed"
        assert toggled["completedAt"] is not None
        assert ("success", "Task marked as completed") in notifier.notices

        important = task_store.toggle_task_importance(task["id"])
        assert important["isImportant"] is True

        by_id = {t["id"]: t for t in task_store.tasks}
        assert by_id[task["id"]]["title"] == "Edited"
        assert by_id[task["id"]]["isImportant"] is True

        task_store.delete_task(task["id"])
        assert [t["id"] for t in task_store.tasks] == [other["id"]]

    def test_stats(self, task_store):
        task = task_store.create_task({"title": "One"})
        task_store.create_task({"title": "Two"})
        task_store.toggle_task_status(task["id"])

        stats = task_store.get_stats()
        assert stats["total"] == 2
        assert stats["completionRate"] == 50

    def test_errors_are_notified(self, task_store, notifier):
        with pytest.raises(ApiError) as exc_info:
            task_store.update_task(999999, {"title": "Missing"})

        assert exc_info.value.status_code == 404
        assert notifier.errors[-1] == "Task not found"

    def test_validation_errors_are_exposed(self, task_store):
        with pytest.raises(ApiError) as exc_info:
            task_store.create_task({"title": ""})

        assert exc_info.value.status_code == 400
        assert exc_info.value.errors

    def test_unauthorized_clears_auth_store(self, task_store, auth_store, api):
        api.token = "bogus"

        with pytest.raises(ApiError):
            task_store.get_tasks()

        assert api.token is None
        assert auth_store.is_authenticated is False
