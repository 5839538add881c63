"""Integration tests for CLI commands.

Query functions are patched so the commands run without a database; the
tests exercise argument parsing, context setup and output rendering.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from rich.console import Console
from typer.testing import CliRunner

from projectflow.database.models.project import ProjectStatus
from projectflow.database.queries.project import ProjectUpdateResult
from projectflow.lifecycle.pipeline import PipelineStageSet, StageStatus
from projectflow.main import app


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep load_config away from any real config files."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setattr("projectflow.cli.project.console", Console(width=200))


@pytest.fixture
def mock_context():
    session = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=None)
    ctx = MagicMock()
    ctx.session_factory = factory
    with patch("projectflow.main.get_app_context", return_value=ctx):
        yield ctx


def make_project(status: ProjectStatus = ProjectStatus.in_progress, progress: int = 33) -> MagicMock:
    project = MagicMock()
    project.id = uuid4()
    project.name = "Customer Portal"
    project.status = status
    project.progress = progress
    project.start_date = date(2026, 1, 5)
    project.end_date = date(2026, 6, 30)
    project.remaining_days = 42
    project.pipeline = (
        PipelineStageSet()
        .with_stage_status("requirement_gathering", StageStatus.completed)
        .model_dump(mode="json")
    )
    project.created_at = datetime.now(timezone.utc)
    return project


@pytest.mark.integration
class TestProjectCLI:
    """Integration tests for project CLI commands."""

    def test_list_table(self, cli_runner: CliRunner, mock_context: MagicMock) -> None:
        project = make_project()
        with patch(
            "projectflow.cli.project.list_projects", AsyncMock(return_value=[project])
        ) as mock_list:
            result = cli_runner.invoke(app, ["project", "list"])

        assert result.exit_code == 0, result.output
        assert "Customer Portal" in result.output
        assert "33%" in result.output
        assert mock_list.await_args.kwargs["status_filter"] is None

    def test_list_json_with_status(self, cli_runner: CliRunner, mock_context: MagicMock) -> None:
        project = make_project()
        with patch(
            "projectflow.cli.project.list_projects", AsyncMock(return_value=[project])
        ) as mock_list:
            result = cli_runner.invoke(
                app, ["project", "list", "--status", "in_progress", "--format", "json"]
            )

        assert result.exit_code == 0, result.output
        assert '"progress": 33' in result.output
        assert mock_list.await_args.kwargs["status_filter"] == ProjectStatus.in_progress

    def test_list_empty(self, cli_runner: CliRunner, mock_context: MagicMock) -> None:
        with patch("projectflow.cli.project.list_projects", AsyncMock(return_value=[])):
            result = cli_runner.invoke(app, ["project", "list"])

        assert result.exit_code == 0
        assert "No projects found" in result.output

    def test_list_invalid_status(self, cli_runner: CliRunner, mock_context: MagicMock) -> None:
        result = cli_runner.invoke(app, ["project", "list", "--status", "archived"])

        assert result.exit_code == 1
        assert "Invalid status" in result.output

    def test_show(self, cli_runner: CliRunner, mock_context: MagicMock) -> None:
        project = make_project()
        with patch("projectflow.cli.project.get_project", AsyncMock(return_value=project)):
            result = cli_runner.invoke(app, ["project", "show", str(project.id)])

        assert result.exit_code == 0, result.output
        assert "requirement_gathering" in result.output
        assert "architect_submission" in result.output
        assert "42 days remaining" in result.output

    def test_show_not_found(self, cli_runner: CliRunner, mock_context: MagicMock) -> None:
        with patch("projectflow.cli.project.get_project", AsyncMock(return_value=None)):
            result = cli_runner.invoke(app, ["project", "show", str(uuid4())])

        assert result.exit_code == 1
        assert "Project not found" in result.output

    def test_show_invalid_id(self, cli_runner: CliRunner, mock_context: MagicMock) -> None:
        result = cli_runner.invoke(app, ["project", "show", "not-a-uuid"])

        assert result.exit_code == 1
        assert "Invalid project id" in result.output

    def test_recompute_reports_status_change(
        self, cli_runner: CliRunner, mock_context: MagicMock
    ) -> None:
        project = make_project(status=ProjectStatus.in_progress, progress=75)
        update = ProjectUpdateResult(project=project, previous_status=ProjectStatus.planning)
        with patch(
            "projectflow.cli.project.recompute_project", AsyncMock(return_value=update)
        ):
            result = cli_runner.invoke(app, ["project", "recompute", str(project.id)])

        assert result.exit_code == 0, result.output
        assert "planning -> in_progress" in result.output
        assert "75%" in result.output

    def test_recompute_not_found(self, cli_runner: CliRunner, mock_context: MagicMock) -> None:
        project_id = uuid4()
        with patch(
            "projectflow.cli.project.recompute_project",
            AsyncMock(side_effect=ValueError(f"Project {project_id} not found")),
        ):
            result = cli_runner.invoke(app, ["project", "recompute", str(project_id)])

        assert result.exit_code == 1
        assert "not found" in result.output


@pytest.mark.integration
def test_invalid_config_file_exits(cli_runner: CliRunner, tmp_path: Path) -> None:
    config_file = tmp_path / "broken.toml"
    config_file.write_text("[web]\nport = 0\n")

    result = cli_runner.invoke(app, ["--config", str(config_file), "project", "list"])

    assert result.exit_code == 1
    assert "Error loading configuration" in result.output
