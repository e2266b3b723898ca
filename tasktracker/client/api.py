"""HTTP client for the Task Tracker API."""

import logging
from collections.abc import Callable
from typing import Any

import httpx

from tasktracker.config import get_settings

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]


def log_notifier(level: str, message: str) -> None:
    """Default notifier: route user-facing notices to the log."""
    if level == "error":
        logger.error(message)
    else:
        logger.info(message)


class ApiError(Exception):
    """A non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class TaskTrackerClient:
    """Thin wrapper over the REST API.

    Every method returns the decoded response envelope. Failures raise
    ApiError after a notification has been surfaced; a 401 also drops the
    stored token so the caller has to authenticate again.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        http: httpx.Client | None = None,
        notifier: Notifier | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.http = http or httpx.Client(
            base_url=base_url or get_settings().api_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self.token = token
        self.notify = notifier or log_notifier
        self.on_unauthorized: Callable[[], None] | None = None

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "TaskTrackerClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def clear_credentials(self) -> None:
        self.token = None

    def request(
        self,
        method: str,
        path: str,
        json: dict | None = None,
        params: dict | None = None,
    ) -> dict[str, Any]:
        """Send a request and return the envelope, raising ApiError on failure."""
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self.http.request(method, path, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            self.notify("error", "Something went wrong")
            raise ApiError(0, str(e)) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success:
            return body

        message = body.get("message") or "Something went wrong"
        if response.status_code == 401:
            self.clear_credentials()
            if self.on_unauthorized is not None:
                self.on_unauthorized()
        self.notify("error", message)
        raise ApiError(response.status_code, message, body.get("errors"))

    # Auth

    def register(self, name: str, email: str, password: str) -> dict[str, Any]:
        return self.request(
            "POST", "/api/auth/register", json={"name": name, "email": email, "password": password}
        )

    def login(self, email: str, password: str) -> dict[str, Any]:
        return self.request("POST", "/api/auth/login", json={"email": email, "password": password})

    def get_me(self) -> dict[str, Any]:
        return self.request("GET", "/api/auth/me")

    def update_profile(self, **fields) -> dict[str, Any]:
        return self.request("PUT", "/api/auth/profile", json=fields)

    def change_password(self, current_password: str, new_password: str) -> dict[str, Any]:
        return self.request(
            "PUT",
            "/api/auth/password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    def logout(self) -> dict[str, Any]:
        return self.request("POST", "/api/auth/logout")

    # Tasks

    def get_tasks(self, filters: dict | None = None) -> dict[str, Any]:
        params = {}
        for key, value in (filters or {}).items():
            if value is None or value == "":
                continue
            params[key] = str(value).lower() if isinstance(value, bool) else value
        return self.request("GET", "/api/tasks", params=params)

    def get_task(self, task_id: int) -> dict[str, Any]:
        return self.request("GET", f"/api/tasks/{task_id}")

    def create_task(self, task_data: dict) -> dict[str, Any]:
        return self.request("POST", "/api/tasks", json=task_data)

    def update_task(self, task_id: int, task_data: dict) -> dict[str, Any]:
        return self.request("PUT", f"/api/tasks/{task_id}", json=task_data)

    def delete_task(self, task_id: int) -> dict[str, Any]:
        return self.request("DELETE", f"/api/tasks/{task_id}")

    def toggle_task_status(self, task_id: int) -> dict[str, Any]:
        return self.request("PATCH", f"/api/tasks/{task_id}/toggle")

    def toggle_task_importance(self, task_id: int) -> dict[str, Any]:
        return self.request("PATCH", f"/api/tasks/{task_id}/important")

    def get_task_stats(self) -> dict[str, Any]:
        return self.request("GET", "/api/tasks/stats")
