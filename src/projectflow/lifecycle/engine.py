"""Project lifecycle engine.

The engine is the single write path for a project's derived fields. Every
persistence of a project whose status or pipeline was touched runs
:meth:`ProjectLifecycleEngine.apply_mutation` first:

1. Caller-supplied status and pipeline edits are applied to a working copy.
2. If the pipeline was touched, status, completion timestamp and progress
   are derived from it (see :mod:`projectflow.lifecycle.deriver`).
   Otherwise progress alone is recalculated.
3. A history entry is appended if the resolved status differs from the last
   recorded one.
4. ``updated_at`` / ``updated_by`` are stamped.

The engine performs no I/O. Loading and saving the project is the query
layer's job (:mod:`projectflow.database.queries.project`), which converts
between ORM rows and :class:`ProjectState` snapshots.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from projectflow.database.models.project import ProjectStatus
from projectflow.lifecycle.deriver import calculate_progress, derive
from projectflow.lifecycle.history import HistoryEntry, record_if_changed
from projectflow.lifecycle.pipeline import PipelineStageSet

if TYPE_CHECKING:
    from projectflow.database.models.project import Project

logger = structlog.get_logger(__name__)


class ProjectState(BaseModel):
    """In-memory snapshot of the lifecycle fields of a project.

    Attributes:
        id: Project id, None before the first insert.
        status: Lifecycle status.
        progress: Percentage of completed pipeline stages.
        completed_at: When the pipeline was found fully completed.
        pipeline: Pipeline stages.
        history: Status history, oldest first.
        created_by: Creator, used as the fallback actor.
        updated_by: Last actor to modify the project.
        updated_at: Time of the last modification.
    """

    id: UUID | None = None
    status: ProjectStatus = ProjectStatus.planning
    progress: int = Field(default=0, ge=0, le=100)
    completed_at: datetime | None = None
    pipeline: PipelineStageSet = Field(default_factory=PipelineStageSet)
    history: list[HistoryEntry] = Field(default_factory=list)
    created_by: UUID
    updated_by: UUID | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, project: Project) -> ProjectState:
        """Build a snapshot from an ORM row."""
        return cls(
            id=project.id,
            status=project.status or ProjectStatus.planning,
            progress=project.progress or 0,
            completed_at=project.completed_at,
            pipeline=PipelineStageSet.model_validate(project.pipeline or {}),
            history=[HistoryEntry.model_validate(entry) for entry in project.history or []],
            created_by=project.created_by,
            updated_by=project.updated_by,
            updated_at=project.updated_at,
        )

    def apply_to(self, project: Project) -> None:
        """Write the snapshot's lifecycle fields onto an ORM row.

        JSON columns are replaced with new objects so the ORM detects the
        change.
        """
        project.status = self.status
        project.progress = self.progress
        project.completed_at = self.completed_at
        project.pipeline = self.pipeline.model_dump(mode="json")
        project.history = [entry.model_dump(mode="json") for entry in self.history]
        project.updated_by = self.updated_by
        if self.updated_at is not None:
            project.updated_at = self.updated_at


class ProjectChanges(BaseModel):
    """Lifecycle-relevant changes requested by a caller.

    Attributes:
        status: New status set directly by the caller, if any.
        pipeline: Replacement pipeline, if any.
        updated_by: Acting user. Falls back to the project's creator.
    """

    status: ProjectStatus | None = None
    pipeline: PipelineStageSet | None = None
    updated_by: UUID | None = None

    @property
    def touches_pipeline(self) -> bool:
        return self.pipeline is not None

    @property
    def touches_status(self) -> bool:
        return self.status is not None


class ProjectLifecycleEngine:
    """Resolves a project's derived fields for a set of changes.

    Args:
        clock: Callable returning the current time. Defaults to UTC now.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logger.bind(component="ProjectLifecycleEngine")

    def apply_mutation(self, project: ProjectState, changes: ProjectChanges) -> ProjectState:
        """Apply changes to a project snapshot and resolve derived fields.

        Args:
            project: Current snapshot. Not modified.
            changes: Requested status and/or pipeline changes.

        Returns:
            A new snapshot ready to be persisted.

        Raises:
            PipelineInvariantError: If the resulting pipeline has no stages.
        """
        now = self._clock()
        working = project.model_copy(deep=True)

        if changes.status is not None:
            working.status = changes.status
        if changes.pipeline is not None:
            working.pipeline = changes.pipeline.stamp_completions(now)

        if changes.touches_pipeline:
            derived = derive(working.pipeline, working.status, working.completed_at, now)
            working.status = derived.status
            working.completed_at = derived.completed_at
            working.progress = derived.progress
        else:
            working.progress = calculate_progress(working.pipeline)

        actor = changes.updated_by or project.created_by
        working.history = record_if_changed(working.history, working.status, actor, now)
        working.updated_by = actor
        working.updated_at = now

        if working.status != project.status:
            self.logger.info(
                "project_status_resolved",
                project_id=str(project.id) if project.id else None,
                from_status=project.status.value,
                to_status=working.status.value,
                progress=working.progress,
                actor=str(actor),
            )

        return working
