"""Project query functions for Projectflow.

Provides async functions for creating, reading, updating, and deleting
Project records using the SQLAlchemy 2.0 select() API.

Every write that touches a project's status or pipeline runs the
:class:`~projectflow.lifecycle.engine.ProjectLifecycleEngine` before the
commit, so derived fields and history are always consistent with the
stored pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

import structlog
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from projectflow.database.models.project import (
    Project,
    ProjectMember,
    ProjectPriority,
    ProjectStatus,
)
from projectflow.database.models.task import Task
from projectflow.lifecycle.engine import ProjectChanges, ProjectLifecycleEngine, ProjectState
from projectflow.lifecycle.pipeline import PipelineStageSet

logger = structlog.get_logger(__name__)


@dataclass
class ProjectUpdateResult:
    """Outcome of a project update.

    Attributes:
        project: The updated and committed project.
        previous_status: Status before the update.
    """

    project: Project
    previous_status: ProjectStatus

    @property
    def status_changed(self) -> bool:
        return self.project.status != self.previous_status


def _replace_members(project: Project, member_ids: list[UUID]) -> None:
    """Make the project's membership match member_ids, keeping existing rows."""
    wanted = list(dict.fromkeys(member_ids))
    existing = {member.user_id: member for member in project.members}
    project.members = [existing.get(user_id) or ProjectMember(user_id=user_id) for user_id in wanted]


async def create_project(
    session: AsyncSession,
    name: str,
    created_by: UUID,
    project_head_id: UUID,
    start_date: date,
    end_date: date,
    description: str | None = None,
    priority: ProjectPriority = ProjectPriority.medium,
    tech_stack: list[str] | None = None,
    member_ids: list[UUID] | None = None,
    pipeline: PipelineStageSet | None = None,
    engine: ProjectLifecycleEngine | None = None,
) -> Project:
    """Create a new project.

    The initial pipeline is run through the lifecycle engine, so a project
    created with started stages is immediately ``in_progress`` and the
    first history entry is recorded.

    Args:
        session: Active async database session.
        name: Human-readable project name.
        created_by: Creating user.
        project_head_id: User leading the project.
        start_date: Planned start date.
        end_date: Planned end date.
        description: Optional description.
        priority: Project priority.
        tech_stack: Technologies used.
        member_ids: Team member user ids.
        pipeline: Initial pipeline. Defaults to all stages pending.
        engine: Lifecycle engine to use. A default engine is created if None.

    Returns:
        The newly created Project instance.
    """
    engine = engine or ProjectLifecycleEngine()
    state = engine.apply_mutation(
        ProjectState(created_by=created_by),
        ProjectChanges(pipeline=pipeline or PipelineStageSet(), updated_by=created_by),
    )

    project = Project(
        name=name,
        description=description,
        priority=priority,
        tech_stack=list(tech_stack or []),
        project_head_id=project_head_id,
        start_date=start_date,
        end_date=end_date,
        created_by=created_by,
        members=[ProjectMember(user_id=user_id) for user_id in dict.fromkeys(member_ids or [])],
    )
    state.apply_to(project)

    session.add(project)
    await session.commit()

    logger.info(
        "project_created",
        project_id=str(project.id),
        name=name,
        status=project.status.value,
        progress=project.progress,
    )

    return project


async def get_project(
    session: AsyncSession,
    project_id: UUID,
) -> Project | None:
    """Retrieve a project by ID.

    Args:
        session: Active async database session.
        project_id: UUID of the project to retrieve.

    Returns:
        The Project instance if found, None otherwise.
    """
    stmt = select(Project).where(Project.id == project_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_projects(
    session: AsyncSession,
    status_filter: ProjectStatus | None = None,
) -> list[Project]:
    """List projects, optionally filtered by status, newest first."""
    stmt = select(Project)

    if status_filter is not None:
        stmt = stmt.where(Project.status == status_filter)

    stmt = stmt.order_by(Project.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_projects_for_user(
    session: AsyncSession,
    user_id: UUID,
) -> list[Project]:
    """List projects the user leads or is a member of, by start date.

    Args:
        session: Active async database session.
        user_id: User to look up.

    Returns:
        Matching projects ordered by ascending start date.
    """
    member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
    stmt = (
        select(Project)
        .where(or_(Project.project_head_id == user_id, Project.id.in_(member_of)))
        .order_by(Project.start_date.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_project(
    session: AsyncSession,
    project_id: UUID,
    changes: ProjectChanges,
    engine: ProjectLifecycleEngine | None = None,
    name: str | None = None,
    description: str | None = None,
    priority: ProjectPriority | None = None,
    tech_stack: list[str] | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    member_ids: list[UUID] | None = None,
) -> ProjectUpdateResult:
    """Update a project.

    Lifecycle changes (status, pipeline) go through the lifecycle engine;
    the remaining keyword arguments are plain column updates applied when
    not None.

    Args:
        session: Active async database session.
        project_id: UUID of the project to update.
        changes: Status/pipeline changes and the acting user.
        engine: Lifecycle engine to use. A default engine is created if None.
        name: New name.
        description: New description.
        priority: New priority.
        tech_stack: Replacement tech stack.
        start_date: New planned start date.
        end_date: New planned end date.
        member_ids: Replacement list of team member ids.

    Returns:
        ProjectUpdateResult with the project and its previous status.

    Raises:
        ValueError: If project not found.
    """
    project = await get_project(session, project_id)
    if project is None:
        raise ValueError(f"Project {project_id} not found")

    previous_status = project.status
    fields_updated: list[str] = []

    plain_updates = {
        "name": name,
        "description": description,
        "priority": priority,
        "tech_stack": list(tech_stack) if tech_stack is not None else None,
        "start_date": start_date,
        "end_date": end_date,
    }
    for field_name, value in plain_updates.items():
        if value is not None:
            setattr(project, field_name, value)
            fields_updated.append(field_name)

    if member_ids is not None:
        _replace_members(project, member_ids)
        fields_updated.append("members")

    if changes.touches_status or changes.touches_pipeline:
        engine = engine or ProjectLifecycleEngine()
        state = engine.apply_mutation(ProjectState.from_model(project), changes)
        state.apply_to(project)
        fields_updated.extend(
            field for field in ("status", "pipeline") if getattr(changes, field) is not None
        )
    elif changes.updated_by is not None:
        project.updated_by = changes.updated_by

    await session.commit()

    logger.info(
        "project_updated",
        project_id=str(project_id),
        fields_updated=fields_updated,
        previous_status=previous_status.value,
        status=project.status.value,
        progress=project.progress,
    )

    return ProjectUpdateResult(project=project, previous_status=previous_status)


async def recompute_project(
    session: AsyncSession,
    project_id: UUID,
    actor: UUID | None = None,
    engine: ProjectLifecycleEngine | None = None,
) -> ProjectUpdateResult:
    """Re-run derivation over a project's stored pipeline and save the result.

    Useful for rows written before the engine existed or after manual
    database edits.

    Raises:
        ValueError: If project not found.
    """
    project = await get_project(session, project_id)
    if project is None:
        raise ValueError(f"Project {project_id} not found")

    pipeline = PipelineStageSet.model_validate(project.pipeline or {})
    return await update_project(
        session,
        project_id,
        ProjectChanges(pipeline=pipeline, updated_by=actor),
        engine=engine,
    )


async def delete_project(
    session: AsyncSession,
    project_id: UUID,
) -> bool:
    """Delete a project together with its members and tasks.

    Args:
        session: Active async database session.
        project_id: UUID of the project to delete.

    Returns:
        True if the project was deleted, False if not found.
    """
    project = await get_project(session, project_id)
    if project is None:
        logger.warning("project_not_found", project_id=str(project_id))
        return False

    await session.execute(delete(Task).where(Task.project_id == project_id))
    await session.delete(project)
    await session.commit()

    logger.info("project_deleted", project_id=str(project_id))
    return True
