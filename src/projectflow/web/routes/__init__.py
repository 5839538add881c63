"""FastAPI route definitions for the Projectflow API.

This module contains route handlers for health checks, projects (including
their pipelines, history and tasks) and tasks.
"""

from __future__ import annotations

from projectflow.web.routes.health import (
    HealthResponse,
    ReadinessResponse,
    create_health_router,
)
from projectflow.web.routes.projects import (
    PhaseStatusUpdate,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    StageStatusUpdate,
    create_projects_router,
)
from projectflow.web.routes.tasks import (
    TaskCreate,
    TaskResponse,
    TaskStatusUpdate,
    create_tasks_router,
)

__all__ = [
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Projects
    "PhaseStatusUpdate",
    "ProjectCreate",
    "ProjectResponse",
    "ProjectUpdate",
    "StageStatusUpdate",
    "create_projects_router",
    # Tasks
    "TaskCreate",
    "TaskResponse",
    "TaskStatusUpdate",
    "create_tasks_router",
]
