"""Task REST API endpoints for Projectflow.

Tasks are created through ``POST /projects/{project_id}/tasks`` (see
:mod:`projectflow.web.routes.projects`). This router covers reading a task
and moving it through its workflow:

- GET /tasks/mine lists the actor's assigned tasks, high priority first
- GET /tasks/{task_id} is visible to the assignee, the project head and members
- PATCH /tasks/{task_id}/status is allowed for the assignee or the project head

Task updates never change a project's status or progress.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from projectflow.database.models.task import TaskPriority, TaskStatus
from projectflow.database.queries.task import (
    get_task,
    list_tasks_for_assignee,
    update_task_status,
)
from projectflow.notifications import WebhookNotifier
from projectflow.web.dependencies import get_actor_id, get_notifier, get_session_factory

logger = structlog.get_logger(__name__)


# --- Pydantic Schemas ---


class TaskCreate(BaseModel):
    """Request schema for creating a new task.

    ``assigned_to`` defaults to the acting user.
    """

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    assigned_to: UUID | None = None
    priority: TaskPriority = TaskPriority.medium
    due_date: date | None = None


class TaskStatusUpdate(BaseModel):
    """Request schema for updating a task's status."""

    status: TaskStatus
    comment: str | None = Field(default=None, max_length=2000)


class TaskComment(BaseModel):
    content: str
    created_by: UUID
    created_at: datetime


class TaskHistoryEntry(BaseModel):
    status: TaskStatus
    updated_by: UUID
    updated_at: datetime
    comment: str | None = None


class TaskResponse(BaseModel):
    """Response schema for task data."""

    id: UUID
    project_id: UUID
    project_name: str | None
    project_head_id: UUID | None
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    assigned_to: UUID
    due_date: date | None
    comments: list[TaskComment]
    history: list[TaskHistoryEntry]
    created_by: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


def create_tasks_router() -> APIRouter:
    """Create tasks router.

    Routes:
        GET /tasks/mine - Tasks assigned to the actor
        GET /tasks/{task_id} - Get task by ID
        PATCH /tasks/{task_id}/status - Update task status
    """
    router = APIRouter(prefix="/tasks", tags=["tasks"])

    @router.get("/mine", response_model=list[TaskResponse])
    async def list_my_tasks(
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[TaskResponse]:
        """List tasks assigned to the actor, sorted by priority then due date."""
        async with session_factory() as session:
            tasks = await list_tasks_for_assignee(session, actor_id)
            response = [TaskResponse.model_validate(t) for t in tasks]

        logger.info("my_tasks_listed", count=len(response))
        return response

    @router.get("/{task_id}", response_model=TaskResponse)
    async def get_task_endpoint(
        task_id: UUID,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> TaskResponse:
        """Get a single task by ID.

        Raises:
            HTTPException: 404 if task not found
            HTTPException: 403 if the actor is not the assignee, head or a member
        """
        async with session_factory() as session:
            task = await get_task(session, task_id)
            if task is None:
                raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
            if not task.can_view(actor_id):
                logger.warning("task_view_denied", task_id=str(task_id))
                raise HTTPException(
                    status_code=http_status.HTTP_403_FORBIDDEN,
                    detail="Not authorized to view this task",
                )
            response = TaskResponse.model_validate(task)

        return response

    @router.patch("/{task_id}/status", response_model=TaskResponse)
    async def update_task_status_endpoint(
        task_id: UUID,
        body: TaskStatusUpdate,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        notifier: WebhookNotifier = Depends(get_notifier),  # noqa: B008
    ) -> Any:
        """Update a task's status, optionally attaching a comment.

        The project head is notified when someone else changes the status.

        Raises:
            HTTPException: 404 if task not found
            HTTPException: 403 if the actor is neither assignee nor project head
        """
        async with session_factory() as session:
            task = await get_task(session, task_id)
            if task is None:
                raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
            if not task.can_update_status(actor_id):
                logger.warning("task_update_denied", task_id=str(task_id))
                raise HTTPException(
                    status_code=http_status.HTTP_403_FORBIDDEN,
                    detail="Not authorized to update this task",
                )

            task = await update_task_status(
                session,
                task,
                body.status,
                actor=actor_id,
                comment=body.comment,
            )
            response = TaskResponse.model_validate(task)

        if response.project_head_id is not None and response.project_head_id != actor_id:
            await notifier.notify_task_status_updated(
                recipient_id=response.project_head_id,
                project_id=response.project_id,
                task_id=response.id,
                title=response.title,
                status=response.status.value,
            )

        return response

    return router
