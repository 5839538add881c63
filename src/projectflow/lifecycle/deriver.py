"""Project status and progress derivation.

This module implements the rules that turn a project's pipeline into its
lifecycle status, completion timestamp and progress percentage:

- Every fixed stage and development phase completed: the project is
  ``completed`` and ``completed_at`` is stamped.
- Otherwise, any stage or phase in progress: the project is ``in_progress``.
- Otherwise, a planning project with any started stage moves to
  ``in_progress``.
- ``stopped`` and ``cancelled`` are manual overrides. While a project holds
  one of them its status and ``completed_at`` are never derived.

Progress is the share of completed stages out of ``3 + len(phases)``,
rounded half up, and is recalculated regardless of the status rules.

All functions here are pure and perform no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from projectflow.database.models.project import ProjectStatus
from projectflow.lifecycle.pipeline import PhaseStatus, PipelineStageSet, StageStatus

logger = structlog.get_logger(__name__)

FROZEN_STATUSES: frozenset[ProjectStatus] = frozenset(
    {ProjectStatus.stopped, ProjectStatus.cancelled}
)

_STARTED_STAGE = {StageStatus.in_progress, StageStatus.completed}
_STARTED_PHASE = {PhaseStatus.in_progress, PhaseStatus.completed}


class PipelineInvariantError(RuntimeError):
    """Raised when a pipeline reports zero stages.

    A pipeline always has three fixed stages, so this signals corrupted
    state rather than bad input.

    Attributes:
        total_stages: The stage count that was computed.
    """

    def __init__(self, total_stages: int):
        self.total_stages = total_stages
        super().__init__(f"Pipeline has {total_stages} stages; at least 3 are required")


@dataclass(frozen=True)
class DerivedState:
    """Result of a derivation pass.

    Attributes:
        status: Resolved project status.
        completed_at: Resolved completion timestamp.
        progress: Percentage of completed stages, 0-100.
    """

    status: ProjectStatus
    completed_at: datetime | None
    progress: int


def has_in_progress_stage(pipeline: PipelineStageSet) -> bool:
    """True if any fixed stage or development phase is in progress."""
    return any(
        stage.status == StageStatus.in_progress for _, stage in pipeline.fixed_stages()
    ) or any(phase.status == PhaseStatus.in_progress for phase in pipeline.development_phases)


def all_stages_completed(pipeline: PipelineStageSet) -> bool:
    """True if every fixed stage and every development phase is completed."""
    return all(
        stage.status == StageStatus.completed for _, stage in pipeline.fixed_stages()
    ) and all(phase.status == PhaseStatus.completed for phase in pipeline.development_phases)


def has_started_phase(pipeline: PipelineStageSet) -> bool:
    """True if any fixed stage or development phase is in progress or completed."""
    return any(
        stage.status in _STARTED_STAGE for _, stage in pipeline.fixed_stages()
    ) or any(phase.status in _STARTED_PHASE for phase in pipeline.development_phases)


def calculate_progress(pipeline: PipelineStageSet) -> int:
    """Return the percentage of completed stages, rounded half up.

    Args:
        pipeline: Pipeline to measure.

    Returns:
        Integer between 0 and 100.

    Raises:
        PipelineInvariantError: If the pipeline reports no stages at all.
    """
    total = pipeline.total_stages
    if total <= 0:
        raise PipelineInvariantError(total)

    completed = sum(
        1 for _, stage in pipeline.fixed_stages() if stage.status == StageStatus.completed
    ) + sum(1 for phase in pipeline.development_phases if phase.status == PhaseStatus.completed)

    # Integer form of floor(completed / total * 100 + 0.5)
    return (completed * 200 + total) // (2 * total)


def derive_status(
    pipeline: PipelineStageSet,
    current_status: ProjectStatus,
    completed_at: datetime | None = None,
    now: datetime | None = None,
) -> tuple[ProjectStatus, datetime | None]:
    """Apply the status transition rules to a pipeline.

    Args:
        pipeline: Pipeline after the mutation being processed.
        current_status: Project status before this derivation.
        completed_at: Project completion timestamp before this derivation.
        now: Timestamp to stamp on completion. Defaults to the current UTC time.

    Returns:
        Tuple of the resolved status and completion timestamp.
    """
    if current_status in FROZEN_STATUSES:
        return current_status, completed_at

    if all_stages_completed(pipeline):
        # Re-deriving an already completed project keeps its first completion timestamp
        if current_status == ProjectStatus.completed and completed_at is not None:
            return ProjectStatus.completed, completed_at
        return ProjectStatus.completed, now or datetime.now(timezone.utc)

    if has_in_progress_stage(pipeline):
        return ProjectStatus.in_progress, completed_at

    if has_started_phase(pipeline) and current_status == ProjectStatus.planning:
        return ProjectStatus.in_progress, completed_at

    return current_status, completed_at


def derive(
    pipeline: PipelineStageSet,
    current_status: ProjectStatus,
    completed_at: datetime | None = None,
    now: datetime | None = None,
) -> DerivedState:
    """Derive status, completion timestamp and progress from a pipeline.

    Args:
        pipeline: Pipeline after the mutation being processed.
        current_status: Project status before this derivation.
        completed_at: Project completion timestamp before this derivation.
        now: Timestamp to stamp on completion. Defaults to the current UTC time.

    Returns:
        The derived state.

    Raises:
        PipelineInvariantError: If the pipeline reports no stages at all.
    """
    status, resolved_completed_at = derive_status(pipeline, current_status, completed_at, now)
    progress = calculate_progress(pipeline)

    logger.debug(
        "project_status_derived",
        from_status=current_status.value,
        to_status=status.value,
        progress=progress,
        frozen=current_status in FROZEN_STATUSES,
    )

    return DerivedState(status=status, completed_at=resolved_completed_at, progress=progress)
