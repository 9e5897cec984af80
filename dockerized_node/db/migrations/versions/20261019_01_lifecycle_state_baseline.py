"""Lifecycle state baseline

Revision ID: 20261019_01
Revises: None
Create Date: 2026-10-19
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "module_config",
        sa.Column("module_key", sa.Text(), primary_key=True),
        sa.Column("installed_version", sa.Text(), nullable=True),
        sa.Column("updated_at_utc", sa.Text(), nullable=False),
    )

    op.create_table(
        "lifecycle_run",
        sa.Column("lifecycle_run_id", sa.Text(), primary_key=True),
        sa.Column("module_key", sa.Text(), nullable=False),
        sa.Column("operation", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("started_at_utc", sa.Text(), nullable=False),
        sa.Column("ended_at_utc", sa.Text(), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("error_type", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("diagnostics", sa.Text(), nullable=True),
        sa.CheckConstraint("status IN ('started', 'success', 'failed')", name="ck_lifecycle_run_status"),
    )
    op.create_index("ix_lifecycle_run_module_started", "lifecycle_run", ["module_key", "started_at_utc"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_lifecycle_run_module_started", table_name="lifecycle_run")
    op.drop_table("lifecycle_run")
    op.drop_table("module_config")
