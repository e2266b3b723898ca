"""Client-side state stores mirroring server responses.

Two independent stores: AuthStore holds the signed-in identity and TaskStore
the task list. Both are filled only from server responses; ordering,
statistics and computed task fields are kept exactly as the server sent them.
"""

import logging
import threading
from typing import Any

from tasktracker.client.api import ApiError, TaskTrackerClient

logger = logging.getLogger(__name__)


class _Store:
    """Local-only state shared by both stores: form drafts and loading flags."""

    def __init__(self, client: TaskTrackerClient) -> None:
        self.client = client
        self.drafts: dict[str, dict[str, Any]] = {}
        self.loading: dict[str, bool] = {}
        self._lock = threading.Lock()

    def save_draft(self, form: str, values: dict[str, Any]) -> None:
        self.drafts[form] = dict(values)

    def get_draft(self, form: str) -> dict[str, Any]:
        return dict(self.drafts.get(form, {}))

    def discard_draft(self, form: str) -> None:
        self.drafts.pop(form, None)

    def is_busy(self, category: str) -> bool:
        return self.loading.get(category, False)

    def _start(self, category: str) -> bool:
        """Mark category as loading; False if it already was."""
        with self._lock:
            if self.loading.get(category):
                return False
            self.loading[category] = True
            return True

    def _finish(self, category: str) -> None:
        with self._lock:
            self.loading[category] = False


class AuthStore(_Store):
    """Signed-in identity."""

    def __init__(self, client: TaskTrackerClient) -> None:
        super().__init__(client)
        self.user: dict[str, Any] | None = None
        self.token: str | None = client.token
        client.on_unauthorized = self._reset

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.token is not None

    @property
    def is_loading(self) -> bool:
        return self.is_busy("auth")

    def _reset(self) -> None:
        self.user = None
        self.token = None
        self.client.clear_credentials()

    def _accept(self, envelope: dict[str, Any]) -> None:
        data = envelope["data"]
        self.user = data["user"]
        self.token = data["token"]
        self.client.token = self.token

    def initialize(self) -> bool:
        """Re-validate a stored token. Returns whether the session is usable."""
        if not self.client.token:
            return False
        self._start("auth")
        try:
            envelope = self.client.get_me()
        except ApiError:
            self._reset()
            return False
        finally:
            self._finish("auth")
        self.user = envelope["data"]["user"]
        self.token = self.client.token
        return True

    def login(self, email: str, password: str) -> dict[str, Any]:
        self._start("auth")
        try:
            envelope = self.client.login(email, password)
        except ApiError:
            self._reset()
            raise
        finally:
            self._finish("auth")
        self._accept(envelope)
        self.client.notify("success", "Login successful!")
        return self.user

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        self._start("auth")
        try:
            envelope = self.client.register(name, email, password)
        except ApiError:
            self._reset()
            raise
        finally:
            self._finish("auth")
        self._accept(envelope)
        self.discard_draft("register")
        self.client.notify("success", "Registration successful!")
        return self.user

    def logout(self) -> None:
        """Drop local credentials; the server call is best effort."""
        try:
            if self.client.token:
                self.client.logout()
        except ApiError as e:
            logger.warning(f"Logout request failed: {e.message}")
        finally:
            self._reset()
            self.client.notify("success", "Logged out successfully")

    def update_profile(self, **fields) -> dict[str, Any]:
        self._start("profile")
        try:
            envelope = self.client.update_profile(**fields)
        finally:
            self._finish("profile")
        self.user = envelope["data"]["user"]
        self.discard_draft("profile")
        self.client.notify("success", "Profile updated successfully!")
        return self.user

    def change_password(self, current_password: str, new_password: str) -> None:
        self._start("password")
        try:
            self.client.change_password(current_password, new_password)
        finally:
            self._finish("password")
        self.discard_draft("password")
        self.client.notify("success", "Password changed successfully!")


class TaskStore(_Store):
    """The signed-in user's task list."""

    def __init__(self, client: TaskTrackerClient) -> None:
        super().__init__(client)
        self.tasks: list[dict[str, Any]] = []
        self.stats: dict[str, Any] | None = None
        self.filters: dict[str, Any] = {}
        self.is_initialized = False

    @property
    def is_loading(self) -> bool:
        return self.is_busy("tasks")

    def get_tasks(self, filters: dict[str, Any] | None = None) -> bool:
        """Fetch the list. Returns False when a fetch was already in flight."""
        if not self._start("tasks"):
            return False
        try:
            envelope = self.client.get_tasks(filters if filters is not None else self.filters)
        finally:
            self._finish("tasks")
        self.tasks = envelope["data"]["tasks"]
        self.is_initialized = True
        return True

    def get_stats(self) -> dict[str, Any] | None:
        if self.is_loading:
            return self.stats
        envelope = self.client.get_task_stats()
        self.stats = envelope["data"]
        return self.stats

    def create_task(self, task_data: dict[str, Any]) -> dict[str, Any]:
        envelope = self.client.create_task(task_data)
        task = envelope["data"]["task"]
        self.tasks = [task, *self.tasks]
        self.discard_draft("task")
        self.client.notify("success", envelope.get("message", "Task created"))
        return task

    def update_task(self, task_id: int, task_data: dict[str, Any]) -> dict[str, Any]:
        envelope = self.client.update_task(task_id, task_data)
        return self._replace(envelope)

    def delete_task(self, task_id: int) -> None:
        envelope = self.client.delete_task(task_id)
        self.tasks = [task for task in self.tasks if task["id"] != task_id]
        self.client.notify("success", envelope.get("message", "Task deleted"))

    def toggle_task_status(self, task_id: int) -> dict[str, Any]:
        return self._replace(self.client.toggle_task_status(task_id))

    def toggle_task_importance(self, task_id: int) -> dict[str, Any]:
        return self._replace(self.client.toggle_task_importance(task_id))

    def set_filters(self, filters: dict[str, Any]) -> None:
        self.filters = dict(filters)

    def clear_filters(self) -> None:
        self.filters = {}

    def _replace(self, envelope: dict[str, Any]) -> dict[str, Any]:
        task = envelope["data"]["task"]
        self.tasks = [task if existing["id"] == task["id"] else existing for existing in self.tasks]
        if "message" in envelope:
            self.client.notify("success", envelope["message"])
        return task
