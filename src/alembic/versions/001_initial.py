"""Initial migration: projects, folders and the folder audit trail

Revision ID: 001
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Projects
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("capacity > 0", name="ck_projects_capacity_positive"),
        sa.CheckConstraint("number > 0", name="ck_projects_number_positive"),
        schema="public",
    )
    op.create_index("ix_public_projects_number", "projects", ["number"], unique=True, schema="public")
    op.create_index("ix_public_projects_name", "projects", ["name"], unique=True, schema="public")
    op.create_index(
        "ix_public_projects_created_at", "projects", ["created_at"], unique=False, schema="public"
    )

    # 2. Folders - the row is the assignment
    op.create_table(
        "folders",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("slot", sa.Integer(), nullable=False),
        sa.Column("tag", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=False),
        sa.Column(
            "state",
            sqlmodel.sql.sqltypes.AutoString(length=20),
            nullable=False,
            server_default="available",
        ),
        sa.Column("assigned_user_id", sa.Uuid(), nullable=True),
        sa.Column("assigned_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["project_id"], ["public.projects.id"]),
        sa.UniqueConstraint("project_id", "slot", name="uq_folders_project_slot"),
        sa.UniqueConstraint("tag", name="uq_folders_tag"),
        sa.CheckConstraint(
            "(state = 'assigned') = (assigned_user_id IS NOT NULL)",
            name="ck_folders_holder_matches_state",
        ),
        sa.CheckConstraint("state IN ('available', 'assigned')", name="ck_folders_state"),
        schema="public",
    )
    op.create_index(
        "ix_public_folders_project_id", "folders", ["project_id"], unique=False, schema="public"
    )
    op.create_index(
        "ix_public_folders_assigned_user_id",
        "folders",
        ["assigned_user_id"],
        unique=False,
        schema="public",
    )
    op.create_index(
        "ix_folders_project_state_slot",
        "folders",
        ["project_id", "state", "slot"],
        unique=False,
        schema="public",
    )
    # At most one assigned folder per (project, user)
    op.create_index(
        "uq_folders_project_assigned_user",
        "folders",
        ["project_id", "assigned_user_id"],
        unique=True,
        schema="public",
        postgresql_where=sa.text("state = 'assigned'"),
    )

    # 3. Folder audit entries (append-only)
    op.create_table(
        "folder_audit_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("folder_id", sa.Uuid(), nullable=True),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("action", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("outcome", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=True),
        sa.Column("request_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["project_id"], ["public.projects.id"]),
        sa.ForeignKeyConstraint(["folder_id"], ["public.folders.id"]),
        schema="public",
    )
    op.create_index(
        "ix_folder_audit_project_created",
        "folder_audit_entries",
        ["project_id", "created_at"],
        unique=False,
        schema="public",
    )
    op.create_index(
        "ix_folder_audit_folder_created",
        "folder_audit_entries",
        ["folder_id", "created_at"],
        unique=False,
        schema="public",
    )
    op.create_index(
        "ix_folder_audit_user_created",
        "folder_audit_entries",
        ["user_id", "created_at"],
        unique=False,
        schema="public",
    )


def downgrade() -> None:
    op.drop_table("folder_audit_entries", schema="public")
    op.drop_table("folders", schema="public")
    op.drop_table("projects", schema="public")
