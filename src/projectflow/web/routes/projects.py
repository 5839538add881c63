"""Project endpoints for Projectflow.

This module provides REST API endpoints for managing Project resources:
- List all projects, or the acting user's projects
- Get, create, update and delete a project
- Edit individual pipeline stages and development phases
- Read a project's status history
- Create and list a project's tasks

Access rules (checked here, before any write reaches the lifecycle engine):
- Viewing requires being the project head, a member, or the creator.
  Anyone else gets 404, the same as for a missing project.
- Changing a project or adding tasks requires being the head or creator (403).
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from projectflow.database.models.project import Project, ProjectPriority, ProjectStatus
from projectflow.database.queries import project as project_queries
from projectflow.database.queries import task as task_queries
from projectflow.database.queries.project import ProjectUpdateResult
from projectflow.lifecycle.engine import ProjectChanges, ProjectLifecycleEngine
from projectflow.lifecycle.history import HistoryEntry
from projectflow.lifecycle.pipeline import (
    DevelopmentPhase,
    PhaseStatus,
    PipelineStageSet,
    StageStatus,
    UnknownStageError,
)
from projectflow.logging import get_logger
from projectflow.notifications import WebhookNotifier
from projectflow.web.dependencies import (
    get_actor_id,
    get_lifecycle_engine,
    get_notifier,
    get_session_factory,
)
from projectflow.web.routes.tasks import TaskCreate, TaskResponse

logger = get_logger(__name__)


class ProjectCreate(BaseModel):
    """Request schema for creating a new project.

    ``project_head_id`` defaults to the acting user.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    project_head_id: UUID | None = None
    member_ids: list[UUID] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    priority: ProjectPriority = ProjectPriority.medium
    start_date: date
    end_date: date
    pipeline: PipelineStageSet | None = None

    @model_validator(mode="after")
    def check_dates(self) -> ProjectCreate:
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class ProjectUpdate(BaseModel):
    """Request schema for updating an existing project.

    All fields are optional. Only provided fields will be updated; status
    and pipeline changes are resolved by the lifecycle engine.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    member_ids: list[UUID] | None = None
    tech_stack: list[str] | None = None
    priority: ProjectPriority | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: ProjectStatus | None = None
    pipeline: PipelineStageSet | None = None


class StageStatusUpdate(BaseModel):
    """Request schema for changing a fixed pipeline stage's status."""

    status: StageStatus


class PhaseStatusUpdate(BaseModel):
    """Request schema for changing a development phase's status."""

    status: PhaseStatus


class ProjectResponse(BaseModel):
    """Response schema for project data, including derived read-only fields."""

    id: UUID
    name: str
    description: str | None
    status: ProjectStatus
    priority: ProjectPriority
    progress: int
    completed_at: datetime | None
    pipeline: PipelineStageSet
    history: list[HistoryEntry]
    tech_stack: list[str]
    project_head_id: UUID
    member_ids: list[UUID]
    start_date: date
    end_date: date
    remaining_days: int
    duration_days: int
    is_completed: bool
    is_delayed: bool
    created_by: UUID
    updated_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


async def _get_visible_project(
    session: AsyncSession,
    project_id: UUID,
    actor_id: UUID,
) -> Project:
    project = await project_queries.get_project(session=session, project_id=project_id)
    if project is None or not project.can_view(actor_id):
        logger.warning(
            "project_not_found_or_denied",
            project_id=str(project_id),
            found=project is not None,
        )
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND,
            detail="Project not found or access denied",
        )
    return project


def _require_manager(project: Project, actor_id: UUID) -> None:
    if not project.can_manage(actor_id):
        logger.warning("project_manage_denied", project_id=str(project.id))
        raise HTTPException(
            status_code=http_status.HTTP_403_FORBIDDEN,
            detail="Only the project head or creator can modify this project",
        )


async def _notify_status_change(
    notifier: WebhookNotifier,
    result: ProjectUpdateResult,
    actor_id: UUID,
) -> None:
    if not result.status_changed:
        return
    await notifier.notify_project_status_changed(
        project_id=result.project.id,
        old_status=result.previous_status.value,
        new_status=result.project.status.value,
        actor=actor_id,
        progress=result.project.progress,
    )


def create_projects_router() -> APIRouter:
    """Create projects router.

    Routes:
        GET /projects/ - List all projects with optional status filter
        GET /projects/mine - Projects the actor leads or belongs to
        GET /projects/{project_id} - Get project by ID
        POST /projects/ - Create new project
        PUT /projects/{project_id} - Update project
        DELETE /projects/{project_id} - Delete project
        PATCH /projects/{project_id}/pipeline/stages/{stage_name} - Set stage status
        POST /projects/{project_id}/pipeline/phases - Add development phase
        PATCH /projects/{project_id}/pipeline/phases/{phase_index} - Set phase status
        GET /projects/{project_id}/history - Status history
        GET /projects/{project_id}/tasks - List project tasks
        POST /projects/{project_id}/tasks - Create task
    """
    router = APIRouter(prefix="/projects", tags=["projects"])

    async def apply_pipeline_edit(
        project_id: UUID,
        actor_id: UUID,
        edit: Callable[[PipelineStageSet], PipelineStageSet],
        session_factory: async_sessionmaker[AsyncSession],
        engine: ProjectLifecycleEngine,
        notifier: WebhookNotifier,
    ) -> ProjectResponse:
        async with session_factory() as session:
            project = await _get_visible_project(session, project_id, actor_id)
            _require_manager(project, actor_id)

            current = PipelineStageSet.model_validate(project.pipeline or {})
            try:
                pipeline = edit(current)
            except UnknownStageError as exc:
                logger.warning("pipeline_stage_not_found", project_id=str(project_id), stage=exc.stage)
                raise HTTPException(
                    status_code=http_status.HTTP_404_NOT_FOUND,
                    detail=str(exc),
                ) from exc

            result = await project_queries.update_project(
                session=session,
                project_id=project_id,
                changes=ProjectChanges(pipeline=pipeline, updated_by=actor_id),
                engine=engine,
            )
            response = ProjectResponse.model_validate(result.project)

        await _notify_status_change(notifier, result, actor_id)
        return response

    @router.get("/", response_model=list[ProjectResponse])
    async def list_projects(
        status: ProjectStatus | None = None,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[ProjectResponse]:
        """List the projects visible to the actor, with optional status filter."""
        async with session_factory() as session:
            projects = await project_queries.list_projects(
                session=session,
                status_filter=status,
            )
            response = [
                ProjectResponse.model_validate(p) for p in projects if p.can_view(actor_id)
            ]

        logger.info(
            "projects_listed", count=len(response), status_filter=status, actor_id=str(actor_id)
        )
        return response

    @router.get("/mine", response_model=list[ProjectResponse])
    async def list_my_projects(
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[ProjectResponse]:
        """List projects the acting user leads or is a member of."""
        async with session_factory() as session:
            projects = await project_queries.list_projects_for_user(
                session=session,
                user_id=actor_id,
            )
            response = [ProjectResponse.model_validate(p) for p in projects]

        logger.info("my_projects_listed", count=len(response))
        return response

    @router.get("/{project_id}", response_model=ProjectResponse)
    async def get_project(
        project_id: UUID,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> ProjectResponse:
        """Get a project by ID.

        Raises:
            HTTPException: 404 if project not found or not visible to the actor
        """
        async with session_factory() as session:
            project = await _get_visible_project(session, project_id, actor_id)
            response = ProjectResponse.model_validate(project)

        logger.info("project_retrieved", project_id=str(project_id))
        return response

    @router.post("/", response_model=ProjectResponse, status_code=http_status.HTTP_201_CREATED)
    async def create_project(
        project_data: ProjectCreate,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        engine: ProjectLifecycleEngine = Depends(get_lifecycle_engine),  # noqa: B008
    ) -> ProjectResponse:
        """Create a new project owned by the acting user."""
        async with session_factory() as session:
            project = await project_queries.create_project(
                session=session,
                name=project_data.name,
                created_by=actor_id,
                project_head_id=project_data.project_head_id or actor_id,
                start_date=project_data.start_date,
                end_date=project_data.end_date,
                description=project_data.description,
                priority=project_data.priority,
                tech_stack=project_data.tech_stack,
                member_ids=project_data.member_ids,
                pipeline=project_data.pipeline,
                engine=engine,
            )
            response = ProjectResponse.model_validate(project)

        logger.info("project_created_via_api", project_id=str(response.id))
        return response

    @router.put("/{project_id}", response_model=ProjectResponse)
    async def update_project(
        project_id: UUID,
        project_data: ProjectUpdate,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        engine: ProjectLifecycleEngine = Depends(get_lifecycle_engine),  # noqa: B008
        notifier: WebhookNotifier = Depends(get_notifier),  # noqa: B008
    ) -> ProjectResponse:
        """Update an existing project.

        Only fields provided in the request body are updated.

        Raises:
            HTTPException: 400 if no fields are provided
            HTTPException: 403 if the actor cannot manage the project
            HTTPException: 404 if project not found
        """
        provided = project_data.model_dump(exclude_unset=True, exclude_none=True)
        if not provided:
            logger.warning("no_updates_provided", project_id=str(project_id))
            raise HTTPException(
                status_code=http_status.HTTP_400_BAD_REQUEST,
                detail="No fields to update",
            )

        async with session_factory() as session:
            project = await _get_visible_project(session, project_id, actor_id)
            _require_manager(project, actor_id)

            start_date = project_data.start_date or project.start_date
            end_date = project_data.end_date or project.end_date
            if end_date < start_date:
                raise HTTPException(
                    status_code=http_status.HTTP_400_BAD_REQUEST,
                    detail="end_date must not be before start_date",
                )

            try:
                result = await project_queries.update_project(
                    session=session,
                    project_id=project_id,
                    changes=ProjectChanges(
                        status=project_data.status,
                        pipeline=project_data.pipeline,
                        updated_by=actor_id,
                    ),
                    engine=engine,
                    name=project_data.name,
                    description=project_data.description,
                    priority=project_data.priority,
                    tech_stack=project_data.tech_stack,
                    start_date=project_data.start_date,
                    end_date=project_data.end_date,
                    member_ids=project_data.member_ids,
                )
            except ValueError as exc:
                logger.warning("project_not_found_for_update", project_id=str(project_id))
                raise HTTPException(
                    status_code=http_status.HTTP_404_NOT_FOUND,
                    detail=str(exc),
                ) from exc
            response = ProjectResponse.model_validate(result.project)

        logger.info(
            "project_updated_via_api",
            project_id=str(project_id),
            fields_updated=sorted(provided),
        )
        await _notify_status_change(notifier, result, actor_id)
        return response

    @router.delete("/{project_id}", status_code=http_status.HTTP_204_NO_CONTENT)
    async def delete_project(
        project_id: UUID,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> None:
        """Delete a project and its tasks.

        Raises:
            HTTPException: 403 if the actor cannot manage the project
            HTTPException: 404 if project not found
        """
        async with session_factory() as session:
            project = await _get_visible_project(session, project_id, actor_id)
            _require_manager(project, actor_id)
            await project_queries.delete_project(session=session, project_id=project_id)

        logger.info("project_deleted_via_api", project_id=str(project_id))

    @router.patch("/{project_id}/pipeline/stages/{stage_name}", response_model=ProjectResponse)
    async def update_stage_status(
        project_id: UUID,
        stage_name: str,
        stage_data: StageStatusUpdate,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        engine: ProjectLifecycleEngine = Depends(get_lifecycle_engine),  # noqa: B008
        notifier: WebhookNotifier = Depends(get_notifier),  # noqa: B008
    ) -> ProjectResponse:
        """Set the status of one of the fixed pipeline stages."""
        return await apply_pipeline_edit(
            project_id,
            actor_id,
            lambda pipeline: pipeline.with_stage_status(stage_name, stage_data.status),
            session_factory,
            engine,
            notifier,
        )

    @router.post(
        "/{project_id}/pipeline/phases",
        response_model=ProjectResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def add_phase(
        project_id: UUID,
        phase: DevelopmentPhase,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        engine: ProjectLifecycleEngine = Depends(get_lifecycle_engine),  # noqa: B008
        notifier: WebhookNotifier = Depends(get_notifier),  # noqa: B008
    ) -> ProjectResponse:
        """Append a development phase to the pipeline."""
        return await apply_pipeline_edit(
            project_id,
            actor_id,
            lambda pipeline: pipeline.with_phase(phase),
            session_factory,
            engine,
            notifier,
        )

    @router.patch("/{project_id}/pipeline/phases/{phase_index}", response_model=ProjectResponse)
    async def update_phase_status(
        project_id: UUID,
        phase_index: int,
        phase_data: PhaseStatusUpdate,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        engine: ProjectLifecycleEngine = Depends(get_lifecycle_engine),  # noqa: B008
        notifier: WebhookNotifier = Depends(get_notifier),  # noqa: B008
    ) -> ProjectResponse:
        """Set the status of a development phase, addressed by position."""
        return await apply_pipeline_edit(
            project_id,
            actor_id,
            lambda pipeline: pipeline.with_phase_status(phase_index, phase_data.status),
            session_factory,
            engine,
            notifier,
        )

    @router.get("/{project_id}/history", response_model=list[HistoryEntry])
    async def get_history(
        project_id: UUID,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[HistoryEntry]:
        """Return the project's status history, oldest first."""
        async with session_factory() as session:
            project = await _get_visible_project(session, project_id, actor_id)
            history = [HistoryEntry.model_validate(entry) for entry in project.history or []]

        return history

    @router.get("/{project_id}/tasks", response_model=list[TaskResponse])
    async def list_project_tasks(
        project_id: UUID,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[TaskResponse]:
        """List the tasks of a project."""
        async with session_factory() as session:
            await _get_visible_project(session, project_id, actor_id)
            tasks = await task_queries.list_tasks_for_project(session=session, project_id=project_id)
            response = [TaskResponse.model_validate(t) for t in tasks]

        return response

    @router.post(
        "/{project_id}/tasks",
        response_model=TaskResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_project_task(
        project_id: UUID,
        task_data: TaskCreate,
        actor_id: UUID = Depends(get_actor_id),  # noqa: B008
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> Any:
        """Create a task in a project. Defaults the assignee to the actor."""
        async with session_factory() as session:
            project = await _get_visible_project(session, project_id, actor_id)
            _require_manager(project, actor_id)

            task = await task_queries.create_task(
                session=session,
                project_id=project_id,
                title=task_data.title,
                assigned_to=task_data.assigned_to or actor_id,
                created_by=actor_id,
                description=task_data.description,
                priority=task_data.priority,
                due_date=task_data.due_date,
            )
            response = TaskResponse.model_validate(task)

        logger.info("task_created_via_api", task_id=str(response.id), project_id=str(project_id))
        return response

    return router
