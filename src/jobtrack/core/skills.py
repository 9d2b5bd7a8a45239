from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence

from jobtrack.types import JobApplication

logger = logging.getLogger(__name__)

SkillLookup = Callable[[str, str], Awaitable[list[str]]]

DEFAULT_DEBOUNCE_SEC = 0.25


def add_skill(skills: Sequence[str], skill: str) -> list[str]:
    normalized = skill.strip()
    if not normalized or normalized in skills:
        return list(skills)
    return [*skills, normalized]


def remove_skill(skills: Sequence[str], skill: str) -> list[str]:
    return [item for item in skills if item != skill]


def known_skills_lookup(source: Callable[[], Iterable[JobApplication]]) -> SkillLookup:
    """Suggest skills already recorded on the session's applications."""

    async def lookup(query: str, locale: str) -> list[str]:
        needle = query.casefold()
        found: dict[str, str] = {}
        for application in source():
            for skill in application.skills:
                if needle in skill.casefold():
                    found.setdefault(skill.casefold(), skill)
        return sorted(found.values(), key=lambda value: (not value.casefold().startswith(needle), value.casefold()))

    return lookup


class SkillSuggester:
    """Debounced autocomplete; a newer query cancels the pending lookup."""

    def __init__(self, lookup: SkillLookup, *, delay: float = DEFAULT_DEBOUNCE_SEC, locale: str = "en"):
        self.lookup = lookup
        self.delay = delay
        self.locale = locale
        self.suggestions: list[str] = []
        self.is_loading = False
        self._pending: asyncio.Task[list[str]] | None = None

    def request(self, query: str, *, exclude: Iterable[str] = ()) -> asyncio.Task[list[str]] | None:
        self.cancel()
        query = query.strip()
        if not query:
            self.suggestions = []
            self.is_loading = False
            return None

        self.is_loading = True
        self._pending = asyncio.get_running_loop().create_task(self._run(query, frozenset(exclude)))
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
        self.is_loading = False

    async def _run(self, query: str, exclude: frozenset[str]) -> list[str]:
        await asyncio.sleep(self.delay)
        try:
            results = await self.lookup(query, self.locale)
        finally:
            self.is_loading = False
        self.suggestions = [item for item in results if item not in exclude]
        logger.debug("Skill suggestions for %r: %s", query, self.suggestions)
        return self.suggestions
