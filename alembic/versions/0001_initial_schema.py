"""Applications and user settings

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from jobtrack.core.constants import STATUS_ORDER, WORK_TYPES

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _in_list(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN ({', '.join(repr(value) for value in values)})"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "applications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("company_location", sa.String(255), nullable=False),
        sa.Column("company_industry", sa.String(120), nullable=False),
        sa.Column("company_salary_range", sa.String(120), nullable=True),
        sa.Column("position", sa.String(255), nullable=False),
        sa.Column("skills", sa.JSON(), nullable=True),
        sa.Column("application_date", sa.Date(), nullable=False),
        sa.Column("cover_letter", sa.Text(), nullable=True),
        sa.Column("salary_expectation", sa.String(120), nullable=True),
        sa.Column("resume_path", sa.String(500), nullable=True),
        sa.Column("job_posting_url", sa.String(1000), nullable=True),
        sa.Column("job_posting_content", sa.Text(), nullable=True),
        sa.Column("source", sa.String(120), nullable=False),
        sa.Column("work_type", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("contacts", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("is_pinned", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(_in_list("status", STATUS_ORDER), name="ck_applications_status"),
        sa.CheckConstraint(_in_list("work_type", WORK_TYPES), name="ck_applications_work_type"),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"])

    op.create_table(
        "user_settings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False, unique=True),
        sa.Column("hide_rejected", sa.Boolean(), nullable=False),
        sa.Column("custom_sources", sa.JSON(), nullable=False),
        sa.Column("custom_industries", sa.JSON(), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("user_settings")
    op.drop_index("ix_applications_user_id", table_name="applications")
    op.drop_table("applications")
