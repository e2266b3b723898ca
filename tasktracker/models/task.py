"""Task model."""

import math
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from tasktracker.database import Base
from tasktracker.models.enums import TaskPriority, TaskStatus
from tasktracker.models.mixins import TimestampMixin, as_utc, utcnow

SECONDS_PER_DAY = 24 * 60 * 60


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Task(Base, TimestampMixin):
    """A task owned by exactly one user."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_status", "user_id", "status"),
        Index("ix_tasks_user_due_date", "user_id", "due_date"),
        Index("ix_tasks_user_priority", "user_id", "priority"),
        Index("ix_tasks_user_created_at", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False, default="")
    status = Column(
        Enum(TaskStatus, name="taskstatus", values_callable=_enum_values),
        nullable=False,
        default=TaskStatus.PENDING,
    )
    priority = Column(
        Enum(TaskPriority, name="taskpriority", values_callable=_enum_values),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    is_important = Column(Boolean, nullable=False, default=False)
    notes = Column(String(1000), nullable=True)

    # Relationships
    user = relationship("User", backref="tasks")

    def set_status(self, status: TaskStatus, now: datetime | None = None) -> None:
        """Change status, keeping completed_at in step with it.

        completed_at is stamped only on the transition into COMPLETED and
        cleared whenever the task is pending.
        """
        status = TaskStatus(status)
        if status == TaskStatus.COMPLETED:
            if self.status != TaskStatus.COMPLETED or self.completed_at is None:
                self.completed_at = now or utcnow()
        else:
            self.completed_at = None
        self.status = status

    def toggle_status(self, now: datetime | None = None) -> None:
        """Flip between pending and completed."""
        self.set_status(TaskStatus(self.status).toggled(), now=now)

    def toggle_important(self) -> None:
        """Flip the importance flag."""
        self.is_important = not self.is_important

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_overdue(self) -> bool:
        """Pending with a due date that has already passed."""
        if self.due_date is None or self.is_completed:
            return False
        return utcnow() > as_utc(self.due_date)

    @property
    def days_until_due(self) -> int | None:
        """Whole days until the due date, rounded up; negative once overdue."""
        if self.due_date is None:
            return None
        delta = as_utc(self.due_date) - utcnow()
        return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
