from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from jobtrack.config import Settings
from jobtrack.db import models  # noqa: F401
from jobtrack.db.base import Base
from jobtrack.db.session import create_session_factory
from jobtrack.types import ApplicationFormData, JobApplication


def _form_values(**overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "company_name": "Acme",
        "company_location": "Berlin",
        "company_industry": "Technology",
        "position": "Backend Engineer",
        "application_date": date(2024, 3, 1),
        "source": "LinkedIn",
        "work_type": "remote",
        "status": "applied",
    }
    values.update(overrides)
    return values


@pytest.fixture
def make_form() -> Callable[..., ApplicationFormData]:
    def _make(**overrides: Any) -> ApplicationFormData:
        return ApplicationFormData.model_validate(_form_values(**overrides))

    return _make


@pytest.fixture
def make_application() -> Callable[..., JobApplication]:
    def _make(**overrides: Any) -> JobApplication:
        stamp = overrides.pop("created_at", datetime(2024, 3, 1, 9, 0, tzinfo=UTC))
        values = _form_values(
            id=overrides.pop("id", str(uuid4())),
            is_pinned=overrides.pop("is_pinned", False),
            created_at=stamp,
            updated_at=overrides.pop("updated_at", stamp),
            **overrides,
        )
        return JobApplication.model_validate(values)

    return _make


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        app_env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'jobtrack.db'}",
        data_dir=tmp_path / "data",
        resume_dir=tmp_path / "resumes",
        preferences_path=tmp_path / "preferences.json",
        user_id="user-1",
        skill_suggest_debounce_ms=10,
        max_resume_bytes=1024,
    )
