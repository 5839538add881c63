"""Database query functions for Projectflow.

This module provides async query functions for all database entities:
- Project CRUD, routed through the lifecycle engine
- Task creation, lookup and status updates
"""

from projectflow.database.queries.project import (
    ProjectUpdateResult,
    create_project,
    delete_project,
    get_project,
    list_projects,
    list_projects_for_user,
    recompute_project,
    update_project,
)
from projectflow.database.queries.task import (
    create_task,
    get_task,
    list_tasks_for_assignee,
    list_tasks_for_project,
    update_task_status,
)

__all__ = [
    # Project queries
    "ProjectUpdateResult",
    "create_project",
    "get_project",
    "list_projects",
    "list_projects_for_user",
    "update_project",
    "recompute_project",
    "delete_project",
    # Task queries
    "create_task",
    "get_task",
    "list_tasks_for_project",
    "list_tasks_for_assignee",
    "update_task_status",
]
