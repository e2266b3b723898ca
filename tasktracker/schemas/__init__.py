"""Pydantic schemas for API requests and responses."""

from tasktracker.schemas.auth import (
    AuthData,
    PasswordChange,
    ProfileUpdate,
    UserData,
    UserLogin,
    UserRegister,
    UserResponse,
)
from tasktracker.schemas.common import Envelope, MessageResponse
from tasktracker.schemas.task import (
    TaskCreate,
    TaskData,
    TaskListData,
    TaskResponse,
    TaskStats,
    TaskSummary,
    TaskUpdate,
)

__all__ = [
    "Envelope",
    "MessageResponse",
    "UserRegister",
    "UserLogin",
    "ProfileUpdate",
    "PasswordChange",
    "UserResponse",
    "AuthData",
    "UserData",
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "TaskData",
    "TaskListData",
    "TaskSummary",
    "TaskStats",
]
