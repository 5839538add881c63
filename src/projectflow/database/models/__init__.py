"""SQLAlchemy ORM models for Projectflow.

This module defines the database schema: projects, project members and
tasks. All models use SQLAlchemy 2.0 declarative style with Mapped[] type
annotations.
"""

from projectflow.database.models.base import Base, JSONDocument, TimestampMixin
from projectflow.database.models.project import (
    Project,
    ProjectMember,
    ProjectPriority,
    ProjectStatus,
)
from projectflow.database.models.task import (
    PRIORITY_ORDER,
    Task,
    TaskPriority,
    TaskStatus,
)

__all__ = [
    "Base",
    "JSONDocument",
    "TimestampMixin",
    "Project",
    "ProjectMember",
    "ProjectPriority",
    "ProjectStatus",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "PRIORITY_ORDER",
]
