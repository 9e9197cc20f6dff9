"""initial alert schema

Revision ID: 5c1e7a0b9d42
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e7a0b9d42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BIGINT_PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    """Create the alert engine tables and seed the logical clock."""
    system_clock = op.create_table(
        "system_clock",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("stamp_seq", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "users",
        sa.Column("user_id", BIGINT_PK, autoincrement=True, nullable=False),
        sa.Column("user_login", sa.String(length=40), nullable=False),
        sa.Column("user_name", sa.String(length=40), nullable=False),
        sa.Column("user_access", sa.SmallInteger(), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
        sa.UniqueConstraint("user_login"),
    )
    op.create_table(
        "preferences",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("pref_key", sa.String(length=40), nullable=False),
        sa.Column("pref_value", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "pref_key"),
    )
    op.create_table(
        "issue_types",
        sa.Column("type_id", BIGINT_PK, autoincrement=True, nullable=False),
        sa.Column("type_name", sa.String(length=40), nullable=False),
        sa.PrimaryKeyConstraint("type_id"),
    )
    op.create_table(
        "projects",
        sa.Column("project_id", BIGINT_PK, autoincrement=True, nullable=False),
        sa.Column("project_name", sa.String(length=40), nullable=False),
        sa.Column("stamp_id", sa.BigInteger(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("project_id"),
    )
    op.create_table(
        "folders",
        sa.Column("folder_id", BIGINT_PK, autoincrement=True, nullable=False),
        sa.Column("project_id", sa.BigInteger(), nullable=False),
        sa.Column("type_id", sa.BigInteger(), nullable=False),
        sa.Column("folder_name", sa.String(length=40), nullable=False),
        sa.Column("stamp_id", sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(["project_id"], ["projects.project_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["type_id"], ["issue_types.type_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("folder_id"),
    )
    op.create_index("ix_folders_project_id", "folders", ["project_id"])
    op.create_index("ix_folders_type_id", "folders", ["type_id"])
    op.create_table(
        "views",
        sa.Column("view_id", BIGINT_PK, autoincrement=True, nullable=False),
        sa.Column("type_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("view_name", sa.String(length=40), nullable=False),
        sa.Column("view_def", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["type_id"], ["issue_types.type_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("view_id"),
    )
    op.create_table(
        "project_rights",
        sa.Column("project_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("project_access", sa.SmallInteger(), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.project_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("project_id", "user_id"),
    )
    op.create_index("ix_project_rights_user_id", "project_rights", ["user_id"])
    op.create_table(
        "alerts",
        sa.Column("alert_id", BIGINT_PK, autoincrement=True, nullable=False),
        sa.Column("alert_key", sa.String(length=120), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("type_id", sa.BigInteger(), nullable=False),
        sa.Column("view_id", sa.BigInteger(), nullable=True),
        sa.Column("project_id", sa.BigInteger(), nullable=True),
        sa.Column("folder_id", sa.BigInteger(), nullable=True),
        sa.Column("delivery_mode", sa.SmallInteger(), nullable=False),
        sa.Column("summary_days", sa.String(length=40), nullable=True),
        sa.Column("summary_hours", sa.String(length=80), nullable=True),
        sa.Column("stamp_id", sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.user_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["type_id"], ["issue_types.type_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["view_id"], ["views.view_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.project_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["folder_id"], ["folders.folder_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("alert_id"),
        sa.UniqueConstraint("alert_key"),
    )
    op.create_index("ix_alerts_user_id", "alerts", ["user_id"])
    op.create_index("ix_alerts_type_id", "alerts", ["type_id"])
    op.create_index("ix_alerts_project_id", "alerts", ["project_id"])
    op.create_index("ix_alerts_folder_id", "alerts", ["folder_id"])
    op.create_index("ix_alerts_view_id", "alerts", ["view_id"])

    op.bulk_insert(system_clock, [{"id": 1, "stamp_seq": 0}])


def downgrade() -> None:
    """Drop the alert engine tables."""
    for index in (
        "ix_alerts_view_id",
        "ix_alerts_folder_id",
        "ix_alerts_project_id",
        "ix_alerts_type_id",
        "ix_alerts_user_id",
    ):
        op.drop_index(index, table_name="alerts")
    op.drop_table("alerts")
    op.drop_index("ix_project_rights_user_id", table_name="project_rights")
    op.drop_table("project_rights")
    op.drop_table("views")
    op.drop_index("ix_folders_type_id", table_name="folders")
    op.drop_index("ix_folders_project_id", table_name="folders")
    op.drop_table("folders")
    op.drop_table("projects")
    op.drop_table("issue_types")
    op.drop_table("preferences")
    op.drop_table("users")
    op.drop_table("system_clock")
