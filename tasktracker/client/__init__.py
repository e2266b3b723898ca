"""Python client for the Task Tracker API with server-mirroring state stores."""

from tasktracker.client.api import ApiError, TaskTrackerClient
from tasktracker.client.state import AuthStore, TaskStore

__all__ = ["ApiError", "TaskTrackerClient", "AuthStore", "TaskStore"]
