"""Initial schema for Projectflow.

Creates the projects, project_members and tasks tables along with the
status and priority enum types.

Revision ID: 001
Revises: None
Create Date: 2026-10-17
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PROJECT_STATUSES = ("planning", "in_progress", "on_hold", "completed", "cancelled", "stopped")
PROJECT_PRIORITIES = ("low", "medium", "high", "urgent")
TASK_STATUSES = ("todo", "in_progress", "review", "completed")
TASK_PRIORITIES = ("high", "medium", "low")


def upgrade() -> None:
    enums = {
        "projectstatus": PROJECT_STATUSES,
        "projectpriority": PROJECT_PRIORITIES,
        "taskstatus": TASK_STATUSES,
        "taskpriority": TASK_PRIORITIES,
    }
    for name, values in enums.items():
        sa.Enum(*values, name=name).create(op.get_bind(), checkfirst=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*PROJECT_STATUSES, name="projectstatus", create_type=False),
            nullable=False,
            server_default="planning",
        ),
        sa.Column(
            "priority",
            sa.Enum(*PROJECT_PRIORITIES, name="projectpriority", create_type=False),
            nullable=False,
            server_default="medium",
        ),
        sa.Column("progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pipeline", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("history", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("tech_stack", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("project_head_id", sa.Uuid(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_project_head_id", "projects", ["project_head_id"])

    op.create_table(
        "project_members",
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.Uuid(), primary_key=True),
        sa.Column("role", sa.Text(), nullable=True),
    )
    op.create_index("ix_project_members_user_id", "project_members", ["user_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column(
            "project_id",
            sa.Uuid(),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*TASK_STATUSES, name="taskstatus", create_type=False),
            nullable=False,
            server_default="todo",
        ),
        sa.Column(
            "priority",
            sa.Enum(*TASK_PRIORITIES, name="taskpriority", create_type=False),
            nullable=False,
            server_default="medium",
        ),
        sa.Column("assigned_to", sa.Uuid(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("comments", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("history", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_tasks_project_id", "tasks", ["project_id"])
    op.create_index("ix_tasks_assigned_to", "tasks", ["assigned_to"])


def downgrade() -> None:
    op.drop_index("ix_tasks_assigned_to", table_name="tasks")
    op.drop_index("ix_tasks_project_id", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_project_members_user_id", table_name="project_members")
    op.drop_table("project_members")
    op.drop_index("ix_projects_project_head_id", table_name="projects")
    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_table("projects")

    for name in ("taskpriority", "taskstatus", "projectpriority", "projectstatus"):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
