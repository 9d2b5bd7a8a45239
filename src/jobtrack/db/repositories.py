from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobtrack.db.models import ApplicationRow, UserSettingsRow
from jobtrack.errors import AuthRequiredError, StoreError
from jobtrack.types import (
    AppSettings,
    ApplicationFormData,
    ApplicationUpdate,
    ContactPerson,
    JobApplication,
)

logger = logging.getLogger(__name__)

# Optional columns where an explicitly empty value is stored as NULL.
NULLABLE_COLUMNS = frozenset(
    {
        "company_salary_range",
        "skills",
        "cover_letter",
        "salary_expectation",
        "resume_path",
        "job_posting_url",
        "job_posting_content",
        "notes",
    }
)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def row_to_application(row: ApplicationRow) -> JobApplication:
    return JobApplication(
        id=row.id,
        company_name=row.company_name,
        company_location=row.company_location,
        company_industry=row.company_industry,
        company_salary_range=row.company_salary_range or None,
        position=row.position,
        skills=row.skills or [],
        application_date=row.application_date,
        cover_letter=row.cover_letter or None,
        salary_expectation=row.salary_expectation or None,
        resume_path=row.resume_path or None,
        job_posting_url=row.job_posting_url or None,
        job_posting_content=row.job_posting_content or None,
        source=row.source,
        work_type=row.work_type,
        notes=row.notes or None,
        contacts=[ContactPerson.model_validate(item) for item in row.contacts or []],
        status=row.status,
        is_pinned=row.is_pinned,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def application_to_row(data: ApplicationFormData, user_id: str) -> ApplicationRow:
    return ApplicationRow(
        user_id=user_id,
        company_name=data.company_name,
        company_location=data.company_location,
        company_industry=data.company_industry,
        company_salary_range=data.company_salary_range or None,
        position=data.position,
        skills=data.skills or None,
        application_date=data.application_date,
        cover_letter=data.cover_letter or None,
        salary_expectation=data.salary_expectation or None,
        resume_path=data.resume_path or None,
        job_posting_url=data.job_posting_url or None,
        job_posting_content=data.job_posting_content or None,
        source=data.source,
        work_type=data.work_type,
        notes=data.notes or None,
        contacts=[contact.model_dump() for contact in data.contacts],
        status=data.status,
        is_pinned=False,
    )


def build_update_values(update: ApplicationUpdate) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name, value in update.changes().items():
        if name == "contacts":
            values[name] = [contact.model_dump() for contact in value or []]
        elif name in NULLABLE_COLUMNS:
            values[name] = value or None
        else:
            values[name] = value
    values["updated_at"] = datetime.now(UTC)
    return values


class _SessionScope:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.warning("Store operation %s failed: %s", action, exc)
                raise StoreError(str(exc)) from exc


class ApplicationRepository(_SessionScope):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        owner_id: str | None = None,
    ):
        super().__init__(session_factory)
        self.owner_id = owner_id

    def _scoped(self, statement: Select) -> Select:
        if not self.owner_id:
            raise AuthRequiredError()
        return statement.where(ApplicationRow.user_id == self.owner_id)

    async def _get_row(self, session: AsyncSession, application_id: str) -> ApplicationRow | None:
        statement = self._scoped(select(ApplicationRow).where(ApplicationRow.id == application_id))
        return await session.scalar(statement)

    async def get_all(self) -> list[JobApplication]:
        async with self._session("get_all") as session:
            statement = self._scoped(select(ApplicationRow)).order_by(ApplicationRow.created_at.desc())
            rows = await session.scalars(statement)
            return [row_to_application(row) for row in rows.all()]

    async def get_by_id(self, application_id: str) -> JobApplication | None:
        async with self._session("get_by_id") as session:
            row = await self._get_row(session, application_id)
            return row_to_application(row) if row else None

    async def create(self, data: ApplicationFormData, user_id: str) -> JobApplication:
        if not self.owner_id:
            raise AuthRequiredError()
        async with self._session("create") as session:
            row = application_to_row(data, user_id)
            session.add(row)
            await session.commit()
            await session.refresh(row)
            logger.info("Created application id=%s company=%s", row.id, row.company_name)
            return row_to_application(row)

    async def update(self, application_id: str, data: ApplicationUpdate) -> JobApplication:
        async with self._session("update") as session:
            row = await self._get_row(session, application_id)
            if row is None:
                raise StoreError(f"application {application_id} not found")

            for key, value in build_update_values(data).items():
                setattr(row, key, value)

            await session.commit()
            await session.refresh(row)
            return row_to_application(row)

    async def delete(self, application_id: str) -> None:
        async with self._session("delete") as session:
            row = await self._get_row(session, application_id)
            if row is None:
                raise StoreError(f"application {application_id} not found")
            await session.delete(row)
            await session.commit()
            logger.info("Deleted application id=%s", application_id)

    async def toggle_pin(self, application_id: str, is_pinned: bool) -> JobApplication:
        async with self._session("toggle_pin") as session:
            row = await self._get_row(session, application_id)
            if row is None:
                raise StoreError(f"application {application_id} not found")

            row.is_pinned = not is_pinned
            row.updated_at = datetime.now(UTC)
            await session.commit()
            await session.refresh(row)
            return row_to_application(row)


class SettingsRepository(_SessionScope):
    async def get(self, user_id: str) -> AppSettings | None:
        async with self._session("get_settings") as session:
            row = await session.scalar(select(UserSettingsRow).where(UserSettingsRow.user_id == user_id))
            if row is None:
                return None
            return AppSettings(
                hide_rejected=row.hide_rejected,
                custom_sources=list(row.custom_sources or []),
                custom_industries=list(row.custom_industries or []),
            )

    async def save(self, user_id: str, settings: AppSettings) -> None:
        async with self._session("save_settings") as session:
            row = await session.scalar(select(UserSettingsRow).where(UserSettingsRow.user_id == user_id))
            if row is None:
                row = UserSettingsRow(user_id=user_id)
                session.add(row)

            row.hide_rejected = settings.hide_rejected
            row.custom_sources = list(settings.custom_sources)
            row.custom_industries = list(settings.custom_industries)
            await session.commit()
