from __future__ import annotations

from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine

from jobtrack.config import Settings
from jobtrack.db import models  # noqa: F401
from jobtrack.db.base import Base


def ensure_data_directories(settings: Settings) -> None:
    paths: list[Path] = [
        settings.data_dir,
        settings.resume_dir,
        settings.preferences_path.parent,
    ]
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


async def init_database(engine: AsyncEngine, settings: Settings) -> list[str]:
    ensure_data_directories(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return sorted(Base.metadata.tables)
