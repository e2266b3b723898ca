"""Task schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import Field, StringConstraints, field_validator

from tasktracker.models.enums import TaskPriority, TaskStatus
from tasktracker.models.mixins import as_utc, utcnow
from tasktracker.schemas.common import ApiModel

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
Notes = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]
Tag = Annotated[str, StringConstraints(strip_whitespace=True, max_length=20)]


class TaskCreate(ApiModel):
    """Create a new task."""

    title: Title
    description: Description = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    tags: list[Tag] = Field(default_factory=list, max_length=10)
    is_important: bool = False
    notes: Notes | None = None

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value: datetime | None) -> datetime | None:
        value = as_utc(value)
        if value is not None and value <= utcnow():
            raise ValueError("Due date must be in the future")
        return value


class TaskUpdate(ApiModel):
    """Update a task. Only the fields present in the request are changed."""

    title: Title | None = None
    description: Description | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None
    tags: list[Tag] | None = Field(None, max_length=10)
    is_important: bool | None = None
    notes: Notes | None = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class TaskResponse(ApiModel):
    """Task response, including fields computed at read time."""

    id: int
    user_id: int
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None
    completed_at: datetime | None
    tags: list[str]
    is_important: bool
    notes: str | None
    created_at: datetime
    updated_at: datetime
    is_completed: bool
    is_overdue: bool
    days_until_due: int | None

    @field_validator("due_date", "completed_at", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class TaskData(ApiModel):
    """Payload wrapping a single task."""

    task: TaskResponse


class TaskSummary(ApiModel):
    """Counts returned alongside a task listing."""

    total: int
    completed: int
    pending: int
    important: int


class PriorityCounts(ApiModel):
    high: int
    medium: int
    low: int


class TaskStats(TaskSummary):
    """Aggregate statistics over all of a user's tasks."""

    overdue: int
    completion_rate: int
    by_priority: PriorityCounts


class TaskListData(ApiModel):
    """Payload of the task listing endpoint."""

    tasks: list[TaskResponse]
    statistics: TaskSummary
