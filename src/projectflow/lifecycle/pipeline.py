"""Project delivery pipeline.

A pipeline is three fixed pre-development stages followed by any number of
development phases. The models here only hold stage state; deriving the
project's status and progress from it lives in
:mod:`projectflow.lifecycle.deriver`.

Stage status values use a hyphen (``in-progress``) on the wire, unlike
project status values (``in_progress``).
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class StageStatus(str, enum.Enum):
    """Status of one of the fixed pipeline stages."""

    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


class PhaseStatus(str, enum.Enum):
    """Status of a development phase."""

    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"
    delayed = "delayed"


FIXED_STAGES: tuple[str, ...] = (
    "requirement_gathering",
    "architect_creation",
    "architect_submission",
)


class UnknownStageError(LookupError):
    """Raised when a fixed stage name or phase index does not exist.

    Attributes:
        stage: The stage name or phase index that was requested.
    """

    def __init__(self, stage: str | int):
        self.stage = stage
        if isinstance(stage, int):
            msg = f"Development phase {stage} does not exist"
        else:
            msg = f"Unknown pipeline stage: {stage}. Valid stages: {list(FIXED_STAGES)}"
        super().__init__(msg)


class PipelineStage(BaseModel):
    """One of the three fixed stages."""

    model_config = ConfigDict(extra="forbid")

    status: StageStatus = StageStatus.pending
    completed_at: datetime | None = None


class DevelopmentPhase(BaseModel):
    """A named development phase with optional planned dates."""

    model_config = ConfigDict(extra="forbid")

    phase_name: str = Field(..., min_length=1, max_length=255)
    status: PhaseStatus = PhaseStatus.pending
    start_date: date | None = None
    end_date: date | None = None
    completed_at: datetime | None = None


class PipelineStageSet(BaseModel):
    """The full pipeline of a project.

    The instance is treated as a value: the ``with_*`` helpers return a
    modified copy and leave this instance untouched.
    """

    model_config = ConfigDict(extra="forbid")

    requirement_gathering: PipelineStage = Field(default_factory=PipelineStage)
    architect_creation: PipelineStage = Field(default_factory=PipelineStage)
    architect_submission: PipelineStage = Field(default_factory=PipelineStage)
    development_phases: list[DevelopmentPhase] = Field(default_factory=list)

    @property
    def total_stages(self) -> int:
        return len(FIXED_STAGES) + len(self.development_phases)

    def fixed_stages(self) -> Iterator[tuple[str, PipelineStage]]:
        """Yield ``(name, stage)`` for the fixed stages in pipeline order."""
        for name in FIXED_STAGES:
            yield name, getattr(self, name)

    def stage(self, name: str) -> PipelineStage:
        if name not in FIXED_STAGES:
            raise UnknownStageError(name)
        return getattr(self, name)

    def phase(self, index: int) -> DevelopmentPhase:
        if not 0 <= index < len(self.development_phases):
            raise UnknownStageError(index)
        return self.development_phases[index]

    def with_stage_status(self, name: str, status: StageStatus) -> PipelineStageSet:
        stage = self.stage(name)
        updated = self.model_copy(deep=True)
        setattr(updated, name, stage.model_copy(update={"status": status}))
        return updated

    def with_phase_status(self, index: int, status: PhaseStatus) -> PipelineStageSet:
        phase = self.phase(index)
        updated = self.model_copy(deep=True)
        updated.development_phases[index] = phase.model_copy(update={"status": status})
        return updated

    def with_phase(self, phase: DevelopmentPhase) -> PipelineStageSet:
        updated = self.model_copy(deep=True)
        updated.development_phases.append(phase.model_copy())
        return updated

    def stamp_completions(self, now: datetime) -> PipelineStageSet:
        """Fill ``completed_at`` on completed stages and phases that lack one.

        Stages that are no longer completed keep whatever timestamp they had.
        """
        updated = self.model_copy(deep=True)
        for _, stage in updated.fixed_stages():
            if stage.status == StageStatus.completed and stage.completed_at is None:
                stage.completed_at = now
        for phase in updated.development_phases:
            if phase.status == PhaseStatus.completed and phase.completed_at is None:
                phase.completed_at = now
        return updated
