"""create parallel_benchmark_result

Revision ID: 7c1e4d2a9b30
Revises: 
Create Date: 2026-10-18 10:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7c1e4d2a9b30"
down_revision = None
branch_labels = None
depends_on = None

GRANTEE = '"hetzner-ci"'


def upgrade() -> None:
    # result of individual benchmark scenarios; no key, duplicates allowed
    op.create_table(
        "parallel_benchmark_result",
        sa.Column("build_job_id", sa.Text(), nullable=False),
        sa.Column("framework_version", sa.Text(), nullable=False),
        sa.Column("scenario_name", sa.Text(), nullable=False),
        sa.Column("scenario_version", sa.Text(), nullable=False),
        sa.Column("query", sa.Text(), nullable=False),
        sa.Column("load_phase_duration", sa.Integer(), nullable=True),
        sa.Column("queries", sa.Integer(), nullable=False),
        sa.Column("qps", sa.Double(), nullable=False),
        sa.Column("min", sa.Double(), nullable=False),
        sa.Column("max", sa.Double(), nullable=False),
        sa.Column("avg", sa.Double(), nullable=False),
        sa.Column("p50", sa.Double(), nullable=False),
        sa.Column("p95", sa.Double(), nullable=False),
        sa.Column("p99", sa.Double(), nullable=False),
        sa.Column("std", sa.Double(), nullable=False),
        sa.Column("slope", sa.Double(), nullable=False),
    )
    if op.get_bind().dialect.name == "postgresql":
        op.execute(f"GRANT SELECT, INSERT, UPDATE ON TABLE parallel_benchmark_result TO {GRANTEE}")


def downgrade() -> None:
    if op.get_bind().dialect.name == "postgresql":
        op.execute(f"REVOKE SELECT, INSERT, UPDATE ON TABLE parallel_benchmark_result FROM {GRANTEE}")
    op.drop_table("parallel_benchmark_result")
