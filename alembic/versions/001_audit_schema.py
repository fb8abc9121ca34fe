"""Audit schema - decision_executions, history_jobs.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "decision_executions",
        sa.Column("execution_id", sa.UUID(), primary_key=True),
        sa.Column("decision_key", sa.Text(), nullable=False),
        sa.Column("decision_name", sa.Text(), nullable=True),
        sa.Column("deployment_id", sa.Text(), nullable=True),
        sa.Column("hit_policy", sa.String(32), nullable=False),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("failed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("audit_json", postgresql.JSONB(), nullable=False),
        sa.Column("audit_hash", sa.String(64), nullable=False),
        sa.Column("created_at", sa.String(50), nullable=False),
    )
    op.create_index(
        "ix_decision_executions_decision_key",
        "decision_executions",
        ["decision_key", "start_time"],
    )

    op.create_table(
        "history_jobs",
        sa.Column("job_id", sa.UUID(), primary_key=True),
        sa.Column(
            "execution_id",
            sa.UUID(),
            sa.ForeignKey("decision_executions.execution_id"),
            nullable=True,
        ),
        sa.Column("job_handler_type", sa.String(255), nullable=False),
        sa.Column("job_handler_cfg", postgresql.JSONB(), nullable=True),
        sa.Column("lock_owner", sa.String(255), nullable=True),
        sa.Column("lock_exp_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("retries", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("exception_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.String(50), nullable=False),
    )
    # Partial index: only locked jobs can expire
    op.create_index(
        "ix_history_jobs_lock_exp_time",
        "history_jobs",
        ["lock_exp_time"],
        postgresql_where=sa.text("lock_exp_time IS NOT NULL"),
    )


def downgrade() -> None:
    op.drop_index("ix_history_jobs_lock_exp_time", table_name="history_jobs")
    op.drop_table("history_jobs")
    op.drop_index("ix_decision_executions_decision_key", table_name="decision_executions")
    op.drop_table("decision_executions")
