"""Task service: owner-scoped queries, mutations and statistics."""

import logging
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy import and_, case, func, nulls_last, or_
from sqlalchemy.orm import Session

from tasktracker.models.enums import TaskPriority, TaskStatus
from tasktracker.models.mixins import utcnow
from tasktracker.models.task import Task
from tasktracker.models.user import User
from tasktracker.schemas.task import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

# Fields that may be cleared with an explicit null on update
NULLABLE_UPDATE_FIELDS = ("due_date", "notes")


def completion_rate(completed: int, total: int) -> int:
    """Percentage of completed tasks, rounded half up; 0 for no tasks."""
    if total <= 0:
        return 0
    # floor(100 * completed / total + 0.5) in integer arithmetic
    return (200 * completed + total) // (2 * total)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class TaskService:
    """Service for task operations scoped to their owner."""

    def __init__(self, db: Session):
        self.db = db

    def get_owned_task(self, task_id: int, user: User) -> Task:
        """Get a task, checking that the user owns it.

        Raises 404 when the task does not exist and 403 when it belongs to
        someone else.
        """
        task = self.db.get(Task, task_id)
        if task is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
        if task.user_id != user.id:
            logger.warning(f"User {user.id} denied access to task {task_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to access this task",
            )
        return task

    def list_tasks(
        self,
        user_id: int,
        task_status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        is_important: bool | None = None,
        search: str | None = None,
    ) -> list[Task]:
        """List a user's tasks matching every given filter.

        Ordering is fixed: important first, then earliest due date with
        undated tasks last, then newest first.
        """
        query = self.db.query(Task).filter(Task.user_id == user_id)

        if task_status is not None:
            query = query.filter(Task.status == task_status)
        if priority is not None:
            query = query.filter(Task.priority == priority)
        if is_important is not None:
            query = query.filter(Task.is_important.is_(is_important))
        if search:
            pattern = _like_pattern(search)
            query = query.filter(
                or_(
                    Task.title.ilike(pattern, escape="\\"),
                    Task.description.ilike(pattern, escape="\\"),
                )
            )

        return query.order_by(
            Task.is_important.desc(),
            nulls_last(Task.due_date.asc()),
            Task.created_at.desc(),
            Task.id.desc(),
        ).all()

    def summary(self, user_id: int) -> dict:
        """Total, completed, pending and important counts for a user."""
        stats = self.statistics(user_id)
        return {key: stats[key] for key in ("total", "completed", "pending", "important")}

    def statistics(self, user_id: int, now: datetime | None = None) -> dict:
        """Aggregate counts over all of a user's tasks in a single query."""
        now = now or utcnow()

        def count_where(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        row = (
            self.db.query(
                func.count(Task.id),
                count_where(Task.status == TaskStatus.COMPLETED),
                count_where(Task.status == TaskStatus.PENDING),
                count_where(Task.is_important.is_(True)),
                count_where(
                    and_(
                        Task.status == TaskStatus.PENDING,
                        Task.due_date.is_not(None),
                        Task.due_date < now,
                    )
                ),
                count_where(Task.priority == TaskPriority.HIGH),
                count_where(Task.priority == TaskPriority.MEDIUM),
                count_where(Task.priority == TaskPriority.LOW),
            )
            .filter(Task.user_id == user_id)
            .one()
        )
        total, completed, pending, important, overdue, high, medium, low = (int(v) for v in row)

        return {
            "total": total,
            "completed": completed,
            "pending": pending,
            "important": important,
            "overdue": overdue,
            "completion_rate": completion_rate(completed, total),
            "by_priority": {"high": high, "medium": medium, "low": low},
        }

    def create_task(self, user: User, task_data: TaskCreate) -> Task:
        """Create a task owned by the user."""
        task = Task(
            user_id=user.id,
            title=task_data.title,
            description=task_data.description,
            priority=task_data.priority,
            due_date=task_data.due_date,
            tags=list(task_data.tags),
            is_important=task_data.is_important,
            notes=task_data.notes,
            status=TaskStatus.PENDING,
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"Created task {task.id} for user {user.id}")
        return task

    def update_task(self, task: Task, task_data: TaskUpdate) -> Task:
        """Apply the fields present in the update to the task."""
        if task_data.title is not None:
            task.title = task_data.title
        if task_data.description is not None:
            task.description = task_data.description
        if task_data.priority is not None:
            task.priority = task_data.priority
        if task_data.tags is not None:
            task.tags = list(task_data.tags)
        if task_data.is_important is not None:
            task.is_important = task_data.is_important
        for field in NULLABLE_UPDATE_FIELDS:
            if field in task_data.model_fields_set:
                setattr(task, field, getattr(task_data, field))
        if task_data.status is not None:
            task.set_status(task_data.status)

        self.db.commit()
        self.db.refresh(task)
        return task

    def delete_task(self, task: Task) -> None:
        """Permanently delete a task."""
        task_id = task.id
        self.db.delete(task)
        self.db.commit()
        logger.info(f"Deleted task {task_id}")

    def toggle_status(self, task: Task) -> Task:
        """Flip status and completion stamp in one commit."""
        task.toggle_status()
        self.db.commit()
        self.db.refresh(task)
        return task

    def toggle_importance(self, task: Task) -> Task:
        """Flip the importance flag."""
        task.toggle_important()
        self.db.commit()
        self.db.refresh(task)
        return task
