"""Database layer for Projectflow.

This module handles database connections, session management, and provides
the SQLAlchemy async engine configuration for PostgreSQL.

Public API:
    build_engine: Create an AsyncEngine from DatabaseConfig.
    build_session_factory: Create an async_sessionmaker from an engine.
    Base: SQLAlchemy declarative base for all models.
"""

from projectflow.database.connection import build_engine, build_session_factory
from projectflow.database.models import (
    Base,
    Project,
    ProjectMember,
    ProjectPriority,
    ProjectStatus,
    Task,
    TaskPriority,
    TaskStatus,
    TimestampMixin,
)

__all__ = [
    "build_engine",
    "build_session_factory",
    "Base",
    "TimestampMixin",
    "Project",
    "ProjectMember",
    "ProjectPriority",
    "ProjectStatus",
    "Task",
    "TaskPriority",
    "TaskStatus",
]
