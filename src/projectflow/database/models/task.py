"""Task model for Projectflow.

Defines the Task table and TaskStatus / TaskPriority enums. Tasks belong to
a project through an indexed foreign key, so a task can be located by its
own id without scanning project rows.

Comments and status history are stored as JSON arrays on the task row.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date
from typing import Any

from sqlalchemy import Date, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projectflow.database.models.base import Base, JSONDocument, TimestampMixin
from projectflow.database.models.project import Project


class TaskStatus(str, enum.Enum):
    """Workflow status of a task.

    States:
        todo: Not started.
        in_progress: Being worked on by the assignee.
        review: Work done, awaiting the project head.
        completed: Finished.
    """

    todo = "todo"
    in_progress = "in_progress"
    review = "review"
    completed = "completed"


class TaskPriority(str, enum.Enum):
    """Task priority. ``PRIORITY_ORDER`` gives the sort rank."""

    high = "high"
    medium = "medium"
    low = "low"


PRIORITY_ORDER: dict[TaskPriority, int] = {
    TaskPriority.high: 1,
    TaskPriority.medium: 2,
    TaskPriority.low: 3,
}


class Task(TimestampMixin, Base):
    """A unit of work within a project.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Foreign key to the owning project.
        title: Short description of the task.
        description: Detailed description.
        status: Current workflow status.
        priority: Task priority.
        assigned_to: User responsible for the task.
        due_date: Optional due date.
        comments: List of ``{content, created_by, created_at}`` dicts.
        history: List of ``{status, updated_by, updated_at, comment}`` dicts.
        created_by: User who created the task.
        project: Relationship to the owning Project.
    """

    __tablename__ = "tasks"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        default=TaskStatus.todo,
        nullable=False,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        default=TaskPriority.medium,
        nullable=False,
    )
    assigned_to: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    comments: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument,
        default=list,
        nullable=False,
    )
    history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument,
        default=list,
        nullable=False,
    )
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    project: Mapped[Project] = relationship(
        Project,
        lazy="selectin",
    )

    @property
    def project_name(self) -> str | None:
        return self.project.name if self.project is not None else None

    @property
    def project_head_id(self) -> uuid.UUID | None:
        return self.project.project_head_id if self.project is not None else None

    def can_view(self, user_id: uuid.UUID) -> bool:
        """Return True if the user is the assignee or can view the owning project."""
        return self.assigned_to == user_id or (
            self.project is not None and self.project.can_view(user_id)
        )

    def can_update_status(self, user_id: uuid.UUID) -> bool:
        """Return True if the user is the assignee or the project head."""
        return self.assigned_to == user_id or self.project_head_id == user_id

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title={self.title!r}, status={self.status})>"
