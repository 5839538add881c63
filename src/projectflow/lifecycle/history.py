"""Project status history."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from projectflow.database.models.project import ProjectStatus


class HistoryEntry(BaseModel):
    """An audit record of a project status change. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    status: str
    timestamp: datetime
    updated_by: UUID
    description: str


def describe_status_change(status: ProjectStatus | str) -> str:
    value = status.value if isinstance(status, ProjectStatus) else status
    return f"Project status changed to {value}"


def record_if_changed(
    history: list[HistoryEntry],
    new_status: ProjectStatus,
    actor: UUID,
    now: datetime | None = None,
) -> list[HistoryEntry]:
    """Append a history entry unless the last one already has ``new_status``.

    Args:
        history: Existing history, oldest first. Not modified.
        new_status: Status the project resolved to.
        actor: User responsible for the change.
        now: Entry timestamp. Defaults to the current UTC time.

    Returns:
        The history with the new entry appended, or an unchanged copy.
    """
    if history and history[-1].status == new_status.value:
        return list(history)

    entry = HistoryEntry(
        status=new_status.value,
        timestamp=now or datetime.now(timezone.utc),
        updated_by=actor,
        description=describe_status_change(new_status),
    )
    return [*history, entry]
