from __future__ import annotations

import uuid
from datetime import date
from typing import Any

from sqlalchemy import JSON, Boolean, CheckConstraint, Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from jobtrack.core.constants import STATUS_ORDER, WORK_TYPES
from jobtrack.db.base import Base, TimestampMixin


def _new_id() -> str:
    return str(uuid.uuid4())


def _in_list(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class ApplicationRow(TimestampMixin, Base):
    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_location: Mapped[str] = mapped_column(String(255), nullable=False)
    company_industry: Mapped[str] = mapped_column(String(120), nullable=False)
    company_salary_range: Mapped[str | None] = mapped_column(String(120), nullable=True)
    position: Mapped[str] = mapped_column(String(255), nullable=False)
    skills: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    application_date: Mapped[date] = mapped_column(Date, nullable=False)
    cover_letter: Mapped[str | None] = mapped_column(Text, nullable=True)
    salary_expectation: Mapped[str | None] = mapped_column(String(120), nullable=True)
    resume_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    job_posting_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    job_posting_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str] = mapped_column(String(120), nullable=False)
    work_type: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    contacts: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[str] = mapped_column(String(40), default="applied", nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        CheckConstraint(_in_list("status", STATUS_ORDER), name="ck_applications_status"),
        CheckConstraint(_in_list("work_type", WORK_TYPES), name="ck_applications_work_type"),
    )


class UserSettingsRow(TimestampMixin, Base):
    __tablename__ = "user_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    hide_rejected: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    custom_sources: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    custom_industries: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
