from __future__ import annotations

import logging
from typing import Any

from jobtrack.core.constants import DEFAULT_INDUSTRIES, DEFAULT_SOURCES
from jobtrack.db.repositories import SettingsRepository
from jobtrack.types import AppSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """User-extensible source and industry lists layered over the defaults.

    Changes stay in memory until ``save`` writes them to the ``user_settings``
    row; without a repository the store is purely session-local.
    """

    def __init__(
        self,
        repository: SettingsRepository | None = None,
        *,
        user_id: str | None = None,
        settings: AppSettings | None = None,
    ):
        self.repository = repository
        self.user_id = user_id
        self._settings = settings or AppSettings()

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def is_persistent(self) -> bool:
        return self.repository is not None and bool(self.user_id)

    def update_settings(self, **changes: Any) -> AppSettings:
        merged = {**self._settings.model_dump(), **changes}
        self._settings = AppSettings.model_validate(merged)
        return self._settings

    def add_custom_source(self, source: str) -> None:
        self.update_settings(custom_sources=[*self._settings.custom_sources, source])

    def remove_custom_source(self, source: str) -> None:
        self.update_settings(custom_sources=[item for item in self._settings.custom_sources if item != source])

    def add_custom_industry(self, industry: str) -> None:
        self.update_settings(custom_industries=[*self._settings.custom_industries, industry])

    def remove_custom_industry(self, industry: str) -> None:
        self.update_settings(
            custom_industries=[item for item in self._settings.custom_industries if item != industry]
        )

    def get_all_sources(self) -> list[str]:
        return [*DEFAULT_SOURCES, *self._settings.custom_sources]

    def get_all_industries(self) -> list[str]:
        return [*DEFAULT_INDUSTRIES, *self._settings.custom_industries]

    async def load(self) -> AppSettings:
        if not self.is_persistent:
            return self._settings

        stored = await self.repository.get(self.user_id)
        if stored is not None:
            self.update_settings(
                hide_rejected=stored.hide_rejected,
                custom_sources=stored.custom_sources,
                custom_industries=stored.custom_industries,
            )
            logger.info(
                "Loaded settings for %s (%d custom sources, %d custom industries)",
                self.user_id,
                len(stored.custom_sources),
                len(stored.custom_industries),
            )
        return self._settings

    async def save(self) -> None:
        if not self.is_persistent:
            return
        await self.repository.save(self.user_id, self._settings)
