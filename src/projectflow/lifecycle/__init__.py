"""Project lifecycle: pipeline state, status derivation and history.

Public API:
    PipelineStageSet: The three fixed stages plus development phases.
    derive: Compute status, completion timestamp and progress.
    record_if_changed: Append a status history entry when status changes.
    ProjectLifecycleEngine: Apply a mutation and resolve derived fields.
"""

from projectflow.lifecycle.deriver import (
    FROZEN_STATUSES,
    DerivedState,
    PipelineInvariantError,
    all_stages_completed,
    calculate_progress,
    derive,
    derive_status,
    has_in_progress_stage,
    has_started_phase,
)
from projectflow.lifecycle.engine import (
    ProjectChanges,
    ProjectLifecycleEngine,
    ProjectState,
)
from projectflow.lifecycle.history import (
    HistoryEntry,
    describe_status_change,
    record_if_changed,
)
from projectflow.lifecycle.pipeline import (
    FIXED_STAGES,
    DevelopmentPhase,
    PhaseStatus,
    PipelineStage,
    PipelineStageSet,
    StageStatus,
    UnknownStageError,
)

__all__ = [
    # Pipeline
    "FIXED_STAGES",
    "DevelopmentPhase",
    "PhaseStatus",
    "PipelineStage",
    "PipelineStageSet",
    "StageStatus",
    "UnknownStageError",
    # Derivation
    "FROZEN_STATUSES",
    "DerivedState",
    "PipelineInvariantError",
    "all_stages_completed",
    "calculate_progress",
    "derive",
    "derive_status",
    "has_in_progress_stage",
    "has_started_phase",
    # History
    "HistoryEntry",
    "describe_status_change",
    "record_if_changed",
    # Engine
    "ProjectChanges",
    "ProjectLifecycleEngine",
    "ProjectState",
]
