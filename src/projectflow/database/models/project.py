"""Project models for Projectflow.

Defines the Project table, its ProjectMember join table, and the
ProjectStatus / ProjectPriority enums.

A project's pipeline and status history are stored as JSON documents on the
project row. Both are owned by the lifecycle engine: the query layer never
writes them, or the derived ``status``, ``progress`` and ``completed_at``
columns, without running the engine first.
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from projectflow.database.models.base import Base, JSONDocument, TimestampMixin


class ProjectStatus(str, enum.Enum):
    """Lifecycle status for a project.

    States:
        planning: Initial state, no pipeline stage has started.
        in_progress: At least one pipeline stage has started.
        on_hold: Work paused by a manager; pipeline changes still move it.
        completed: Every pipeline stage is completed.
        cancelled: Manually cancelled; automatic derivation is suspended.
        stopped: Legacy manual stop, treated exactly like cancelled.
    """

    planning = "planning"
    in_progress = "in_progress"
    on_hold = "on_hold"
    completed = "completed"
    cancelled = "cancelled"
    stopped = "stopped"


class ProjectPriority(str, enum.Enum):
    """Relative priority of a project."""

    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class ProjectMember(Base):
    """Membership of a user in a project team.

    Attributes:
        project_id: Owning project.
        user_id: Member's user id.
        role: Optional team role (developer, designer, tester, analyst, lead).
    """

    __tablename__ = "project_members"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, index=True)
    role: Mapped[str | None] = mapped_column(Text, nullable=True)


class Project(TimestampMixin, Base):
    """A project tracked through its delivery pipeline.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Human-readable project name.
        description: Free-form project description.
        status: Current lifecycle status (derived, see projectflow.lifecycle).
        priority: Relative priority.
        progress: Percentage of pipeline stages completed (derived).
        completed_at: When the pipeline was last found fully completed.
        pipeline: PipelineStageSet serialized as JSON.
        history: List of status history entries serialized as JSON.
        tech_stack: Technologies used by the project.
        project_head_id: User leading the project.
        start_date: Planned start date.
        end_date: Planned end date.
        created_by: User who created the project.
        updated_by: User who last modified the project.
        members: Team membership rows.
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        default=ProjectStatus.planning,
        nullable=False,
        index=True,
    )
    priority: Mapped[ProjectPriority] = mapped_column(
        default=ProjectPriority.medium,
        nullable=False,
    )
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    pipeline: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument,
        default=dict,
        nullable=False,
    )
    history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument,
        default=list,
        nullable=False,
    )
    tech_stack: Mapped[list[str]] = mapped_column(
        JSONDocument,
        default=list,
        nullable=False,
    )
    project_head_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    members: Mapped[list[ProjectMember]] = relationship(
        ProjectMember,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def member_ids(self) -> list[uuid.UUID]:
        return [member.user_id for member in self.members]

    @property
    def is_completed(self) -> bool:
        return self.status == ProjectStatus.completed

    @property
    def remaining_days(self) -> int:
        """Days left until end_date (negative when overdue, 0 once completed)."""
        if self.is_completed:
            return 0
        return (self.end_date - date.today()).days

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days

    @property
    def is_delayed(self) -> bool:
        if self.is_completed:
            return False
        return date.today() > self.end_date

    def is_project_head(self, user_id: uuid.UUID) -> bool:
        return self.project_head_id == user_id

    def is_team_member(self, user_id: uuid.UUID) -> bool:
        return user_id in self.member_ids

    def can_view(self, user_id: uuid.UUID) -> bool:
        """Whether the user may read this project and its tasks."""
        return (
            self.is_project_head(user_id)
            or self.is_team_member(user_id)
            or self.created_by == user_id
        )

    def can_manage(self, user_id: uuid.UUID) -> bool:
        """Whether the user may change status, pipeline, members or tasks."""
        return self.is_project_head(user_id) or self.created_by == user_id

    def __repr__(self) -> str:
        return f"<Project {self.name} ({self.id}) - {self.status.value} {self.progress}%>"
