"""Task API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from tasktracker.api.dependencies import get_current_user, get_task_service
from tasktracker.models.enums import TaskPriority, TaskStatus
from tasktracker.models.user import User
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
from tasktracker.services.task_service import TaskService

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def _task_envelope(task, message: str | None = None) -> Envelope[TaskData]:
    return Envelope[TaskData](
        message=message,
        data=TaskData(task=TaskResponse.model_validate(task)),
    )


@router.get("", response_model=Envelope[TaskListData])
def get_tasks(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[TaskService, Depends(get_task_service)],
    task_status: Annotated[TaskStatus | None, Query(alias="status")] = None,
    priority: Annotated[TaskPriority | None, Query()] = None,
    is_important: Annotated[bool | None, Query(alias="isImportant")] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
):
    """Get the current user's tasks, filtered and in display order."""
    tasks = service.list_tasks(
        current_user.id,
        task_status=task_status,
        priority=priority,
        is_important=is_important,
        search=search.strip() if search else None,
    )
    return Envelope[TaskListData](
        count=len(tasks),
        data=TaskListData(
            tasks=[TaskResponse.model_validate(task) for task in tasks],
            statistics=TaskSummary(**service.summary(current_user.id)),
        ),
    )


@router.get("/stats", response_model=Envelope[TaskStats])
def get_task_stats(
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[TaskService, Depends(get_task_service)],
):
    """Get aggregate statistics over the current user's tasks."""
    return Envelope[TaskStats](data=TaskStats(**service.statistics(current_user.id)))


@router.get("/{task_id}", response_model=Envelope[TaskData])
def get_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[TaskService, Depends(get_task_service)],
):
    """Get a single task."""
    return _task_envelope(service.get_owned_task(task_id, current_user))


@router.post("", response_model=Envelope[TaskData], status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[TaskService, Depends(get_task_service)],
):
    """Create a new task owned by the current user."""
    task = service.create_task(current_user, task_data)
    return _task_envelope(task, "Task created successfully")


@router.put("/{task_id}", response_model=Envelope[TaskData])
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[TaskService, Depends(get_task_service)],
):
    """Update a task."""
    task = service.get_owned_task(task_id, current_user)
    task = service.update_task(task, task_data)
    return _task_envelope(task, "Task updated successfully")


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[TaskService, Depends(get_task_service)],
):
    """Delete a task."""
    task = service.get_owned_task(task_id, current_user)
    service.delete_task(task)
    return MessageResponse(message="Task deleted successfully")


@router.patch("/{task_id}/toggle", response_model=Envelope[TaskData])
def toggle_task_status(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[TaskService, Depends(get_task_service)],
):
    """Flip a task between pending and completed."""
    task = service.get_owned_task(task_id, current_user)
    task = service.toggle_status(task)
    return _task_envelope(task, f"Task marked as {task.status.value}")


@router.patch("/{task_id}/important", response_model=Envelope[TaskData])
def toggle_task_importance(
    task_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[TaskService, Depends(get_task_service)],
):
    """Flip a task's importance flag."""
    task = service.get_owned_task(task_id, current_user)
    task = service.toggle_importance(task)
    message = "Task marked as important" if task.is_important else "Task unmarked as important"
    return _task_envelope(task, message)
