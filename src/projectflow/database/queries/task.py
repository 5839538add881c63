"""Task query functions for Projectflow.

Provides async functions for creating, reading and updating Task records.
Task writes never touch project-level derived state.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projectflow.database.models.task import PRIORITY_ORDER, Task, TaskPriority, TaskStatus

logger = structlog.get_logger(__name__)


async def create_task(
    session: AsyncSession,
    project_id: UUID,
    title: str,
    assigned_to: UUID,
    created_by: UUID,
    description: str | None = None,
    priority: TaskPriority = TaskPriority.medium,
    due_date: date | None = None,
) -> Task:
    """Create a new task in a project.

    Args:
        session: Active async database session.
        project_id: UUID of the owning project.
        title: Short task description.
        assigned_to: User responsible for the task.
        created_by: Creating user.
        description: Detailed description.
        priority: Task priority.
        due_date: Optional due date.

    Returns:
        The newly created Task instance.
    """
    task = Task(
        project_id=project_id,
        title=title,
        description=description,
        priority=priority,
        due_date=due_date,
        assigned_to=assigned_to,
        created_by=created_by,
        status=TaskStatus.todo,
        comments=[],
        history=[],
    )

    session.add(task)
    await session.commit()
    await session.refresh(task, attribute_names=["project"])

    logger.info(
        "task_created",
        task_id=str(task.id),
        project_id=str(project_id),
        assigned_to=str(assigned_to),
        priority=priority.value,
    )

    return task


async def get_task(
    session: AsyncSession,
    task_id: UUID,
) -> Task | None:
    """Retrieve a task by ID, with its project loaded.

    Returns:
        The Task instance if found, None otherwise.
    """
    stmt = select(Task).where(Task.id == task_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_tasks_for_project(
    session: AsyncSession,
    project_id: UUID,
) -> list[Task]:
    """List a project's tasks, oldest first."""
    stmt = select(Task).where(Task.project_id == project_id).order_by(Task.created_at.asc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


def _task_sort_key(task: Task) -> tuple[int, date]:
    # Tasks without a due date sort after dated tasks of the same priority
    return PRIORITY_ORDER[task.priority], task.due_date or date.max


async def list_tasks_for_assignee(
    session: AsyncSession,
    user_id: UUID,
) -> list[Task]:
    """List tasks assigned to a user across all projects.

    Tasks are ordered by priority (high first), then by due date.
    """
    stmt = select(Task).where(Task.assigned_to == user_id)
    result = await session.execute(stmt)
    return sorted(result.scalars().all(), key=_task_sort_key)


async def update_task_status(
    session: AsyncSession,
    task: Task,
    new_status: TaskStatus,
    actor: UUID,
    comment: str | None = None,
) -> Task:
    """Set a task's status, recording history and an optional comment.

    Permission checks are the caller's job.

    Args:
        session: Active async database session.
        task: Task to update (loaded in ``session``).
        new_status: The new status.
        actor: User making the change.
        comment: Optional comment to attach to the task and history entry.

    Returns:
        The updated Task instance.
    """
    now = datetime.now(timezone.utc).isoformat()
    old_status = task.status

    task.status = new_status
    if comment:
        task.comments = [
            *task.comments,
            {"content": comment, "created_by": str(actor), "created_at": now},
        ]
    task.history = [
        *task.history,
        {
            "status": new_status.value,
            "updated_by": str(actor),
            "updated_at": now,
            "comment": comment,
        },
    ]

    await session.commit()

    logger.info(
        "task_status_updated",
        task_id=str(task.id),
        project_id=str(task.project_id),
        old_status=old_status.value,
        new_status=new_status.value,
        actor=str(actor),
    )

    return task
