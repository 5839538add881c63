"""Project management CLI commands.

This module provides CLI commands for listing and inspecting projects and
for re-running status derivation over stored pipelines.
"""

from __future__ import annotations

import asyncio
import json
from typing import Annotated, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from projectflow.database.models.project import Project, ProjectStatus
from projectflow.database.queries.project import (
    ProjectUpdateResult,
    get_project,
    list_projects,
    recompute_project,
)
from projectflow.lifecycle.pipeline import PipelineStageSet

app = typer.Typer(help="Project management commands")
console = Console()

STATUS_COLORS = {
    "planning": "dim",
    "in_progress": "green",
    "on_hold": "yellow",
    "completed": "blue",
    "cancelled": "red",
    "stopped": "red",
}


def _colored_status(status: ProjectStatus) -> str:
    color = STATUS_COLORS.get(status.value, "white")
    return f"[{color}]{status.value}[/{color}]"


def _parse_project_id(project_id: str) -> UUID:
    try:
        return UUID(project_id)
    except ValueError:
        console.print(f"[red]Invalid project id:[/red] {project_id}")
        raise typer.Exit(code=1) from None


@app.command("list")
def list_command(
    status: Annotated[
        Optional[str],
        typer.Option(
            "--status",
            "-s",
            help="Filter by status (planning, in_progress, on_hold, completed, cancelled)",
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List all projects."""
    from projectflow.main import get_app_context

    ctx = get_app_context()

    status_filter = None
    if status is not None:
        try:
            status_filter = ProjectStatus(status)
        except ValueError:
            valid = ", ".join(s.value for s in ProjectStatus)
            console.print(f"[red]Invalid status:[/red] {status}. Valid values: {valid}")
            raise typer.Exit(code=1) from None

    async def _list_projects() -> list[Project]:
        async with ctx.session_factory() as session:
            return await list_projects(session, status_filter=status_filter)

    projects = asyncio.run(_list_projects())

    if output_format == "json":
        output = [
            {
                "id": str(p.id),
                "name": p.name,
                "status": p.status.value,
                "progress": p.progress,
                "start_date": p.start_date.isoformat(),
                "end_date": p.end_date.isoformat(),
            }
            for p in projects
        ]
        console.print(json.dumps(output, indent=2))
        return

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("End date", style="dim")

    for p in projects:
        table.add_row(
            str(p.id),
            p.name,
            _colored_status(p.status),
            f"{p.progress}%",
            p.end_date.isoformat(),
        )

    console.print(table)


@app.command()
def show(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
) -> None:
    """Show a project with its pipeline."""
    from projectflow.main import get_app_context

    ctx = get_app_context()
    pid = _parse_project_id(project_id)

    async def _get_project() -> Project | None:
        async with ctx.session_factory() as session:
            return await get_project(session, pid)

    project = asyncio.run(_get_project())
    if project is None:
        console.print(f"[red]Project not found:[/red] {project_id}")
        raise typer.Exit(code=1)

    console.print(
        Panel(
            f"[bold]ID:[/bold] {project.id}\n"
            f"[bold]Name:[/bold] {project.name}\n"
            f"[bold]Status:[/bold] {_colored_status(project.status)}\n"
            f"[bold]Progress:[/bold] {project.progress}%\n"
            f"[bold]Dates:[/bold] {project.start_date} to {project.end_date}"
            f" ({project.remaining_days} days remaining)",
            title="Project",
            border_style="cyan",
        )
    )

    pipeline = PipelineStageSet.model_validate(project.pipeline or {})
    table = Table(title="Pipeline")
    table.add_column("Stage", style="bold")
    table.add_column("Status")
    table.add_column("Completed", style="dim")

    for name, stage in pipeline.fixed_stages():
        table.add_row(name, stage.status.value, str(stage.completed_at or ""))
    for phase in pipeline.development_phases:
        table.add_row(phase.phase_name, phase.status.value, str(phase.completed_at or ""))

    console.print(table)


@app.command()
def recompute(
    project_id: Annotated[str, typer.Argument(help="Project ID")],
) -> None:
    """Re-derive status, progress and history from the stored pipeline."""
    from projectflow.main import get_app_context

    ctx = get_app_context()
    pid = _parse_project_id(project_id)

    async def _recompute() -> ProjectUpdateResult:
        async with ctx.session_factory() as session:
            return await recompute_project(session, pid)

    try:
        result = asyncio.run(_recompute())
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e

    project = result.project
    if result.status_changed:
        console.print(
            f"[green]Status changed:[/green] {result.previous_status.value} -> "
            f"{project.status.value} ({project.progress}%)"
        )
    else:
        console.print(f"Status unchanged: {project.status.value} ({project.progress}%)")
