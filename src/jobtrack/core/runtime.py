from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from jobtrack.auth import StaticIdentity
from jobtrack.config import Settings, get_settings
from jobtrack.core.preferences import ViewPreferences
from jobtrack.core.skills import SkillSuggester, known_skills_lookup
from jobtrack.core.state import ApplicationStore
from jobtrack.core.taxonomy import SettingsStore
from jobtrack.db.init import init_database
from jobtrack.db.repositories import ApplicationRepository, SettingsRepository
from jobtrack.db.session import create_engine_for, create_session_factory
from jobtrack.storage.resumes import LocalResumeStorage, ResumeUploader

logger = logging.getLogger(__name__)


@dataclass
class TrackerSession:
    """Everything one tracker session needs, built once and passed explicitly."""

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    identity: StaticIdentity
    applications: ApplicationRepository
    settings_repository: SettingsRepository
    store: ApplicationStore
    taxonomy: SettingsStore
    resumes: LocalResumeStorage
    uploader: ResumeUploader
    preferences: ViewPreferences
    skills: SkillSuggester

    async def save_settings(self) -> None:
        await self.taxonomy.save()
        self.store.set_filters(
            self.store.state.filters.model_copy(update={"hide_rejected": self.taxonomy.settings.hide_rejected})
        )

    async def close(self) -> None:
        self.skills.cancel()
        await self.engine.dispose()
        logger.info("Closed tracker session for %s", self.identity.user_id or "<anonymous>")


async def open_session(settings: Settings | None = None, *, engine: AsyncEngine | None = None) -> TrackerSession:
    settings = settings or get_settings()
    engine = engine or create_engine_for(settings)
    await init_database(engine, settings)

    session_factory = create_session_factory(engine)
    identity = StaticIdentity(settings.user_id)
    user_id = await identity.get_user_id()

    applications = ApplicationRepository(session_factory, owner_id=user_id)
    settings_repository = SettingsRepository(session_factory)
    resumes = LocalResumeStorage(settings.resume_dir)
    store = ApplicationStore(applications, identity, resume_storage=resumes)

    taxonomy = SettingsStore(
        settings_repository if settings.persist_settings else None,
        user_id=user_id,
    )
    loaded = await taxonomy.load()
    store.set_filters(store.state.filters.model_copy(update={"hide_rejected": loaded.hide_rejected}))

    session = TrackerSession(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        identity=identity,
        applications=applications,
        settings_repository=settings_repository,
        store=store,
        taxonomy=taxonomy,
        resumes=resumes,
        uploader=ResumeUploader(resumes, identity, max_bytes=settings.max_resume_bytes),
        preferences=ViewPreferences(settings.preferences_path),
        skills=SkillSuggester(
            known_skills_lookup(lambda: store.state.applications),
            delay=settings.skill_suggest_debounce_ms / 1000,
            locale=loaded.language,
        ),
    )
    logger.info("Opened tracker session (database=%s)", settings.database_url)
    return session
