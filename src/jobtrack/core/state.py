from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from jobtrack.auth import Identity
from jobtrack.core.optimistic import MutationOutcome, OptimisticCoordinator
from jobtrack.core.view import derive_view, group_by_status
from jobtrack.db.repositories import ApplicationRepository
from jobtrack.errors import AuthRequiredError, StoreError
from jobtrack.storage.resumes import LocalResumeStorage
from jobtrack.types import (
    ApplicationFormData,
    ApplicationUpdate,
    FilterOptions,
    JobApplication,
    SortOptions,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApplicationState:
    applications: tuple[JobApplication, ...] = ()
    is_loading: bool = False
    error: str | None = None
    search_query: str = ""
    filters: FilterOptions = field(default_factory=FilterOptions)
    sort: SortOptions = field(default_factory=SortOptions)
    has_hydrated: bool = False


StateListener = Callable[[ApplicationState], None]


class ApplicationStore:
    """In-memory source of truth for one tracker session.

    Every change swaps in a new ``ApplicationState``; snapshots handed to
    listeners are never mutated afterwards.
    """

    def __init__(
        self,
        repository: ApplicationRepository,
        identity: Identity,
        *,
        resume_storage: LocalResumeStorage | None = None,
    ):
        self.repository = repository
        self.identity = identity
        self.resume_storage = resume_storage
        self.mutations = OptimisticCoordinator(self, repository)
        self._state = ApplicationState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ApplicationState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    def _fail(self, exc: StoreError) -> None:
        self._set(error=str(exc), is_loading=False)

    async def fetch_applications(self) -> None:
        self._set(is_loading=True, error=None)
        try:
            applications = await self.repository.get_all()
        except StoreError as exc:
            logger.warning("Loading applications failed: %s", exc)
            self._set(error=str(exc), is_loading=False, has_hydrated=True)
            return

        self._set(applications=tuple(applications), is_loading=False, has_hydrated=True)
        logger.info("Loaded %d applications", len(applications))

    async def add_application(self, data: ApplicationFormData) -> str:
        self._set(is_loading=True, error=None)
        try:
            user_id = await self.identity.get_user_id()
            if not user_id:
                raise AuthRequiredError()
            created = await self.repository.create(data, user_id)
        except StoreError as exc:
            self._fail(exc)
            raise

        self._set(applications=(created, *self._state.applications), is_loading=False)
        return created.id

    async def update_application(self, application_id: str, data: ApplicationUpdate) -> JobApplication:
        self._set(is_loading=True, error=None)
        try:
            updated = await self.repository.update(application_id, data)
        except StoreError as exc:
            self._fail(exc)
            raise

        self._set(applications=self._replaced(application_id, updated), is_loading=False)
        return updated

    async def delete_application(self, application_id: str) -> None:
        self._set(is_loading=True, error=None)
        try:
            current = self.get_application_by_id(application_id)
            if current is not None and current.resume_path and self.resume_storage is not None:
                await self.resume_storage.remove([current.resume_path])
            await self.repository.delete(application_id)
        except StoreError as exc:
            self._fail(exc)
            raise

        remaining = tuple(item for item in self._state.applications if item.id != application_id)
        self._set(applications=remaining, is_loading=False)

    async def update_application_status(self, application_id: str, status: str) -> MutationOutcome:
        return await self.mutations.update_status(application_id, status)

    async def update_application_notes(self, application_id: str, notes: str) -> MutationOutcome:
        return await self.mutations.update_notes(application_id, notes)

    async def toggle_pin(self, application_id: str) -> MutationOutcome:
        return await self.mutations.toggle_pin(application_id)

    def _replaced(self, application_id: str, record: JobApplication) -> tuple[JobApplication, ...]:
        return tuple(record if item.id == application_id else item for item in self._state.applications)

    def replace_application(self, application_id: str, record: JobApplication) -> None:
        if self.get_application_by_id(application_id) is None:
            return
        self._set(applications=self._replaced(application_id, record))

    def record_error(self, message: str) -> None:
        self._set(error=message)

    def clear_error(self) -> None:
        self._set(error=None)

    def set_search_query(self, query: str) -> None:
        self._set(search_query=query)

    def set_filters(self, filters: FilterOptions) -> None:
        self._set(filters=filters)

    def set_sort(self, sort: SortOptions) -> None:
        self._set(sort=sort)

    def clear_filters(self) -> None:
        self._set(filters=FilterOptions(), search_query="")

    def get_application_by_id(self, application_id: str) -> JobApplication | None:
        for item in self._state.applications:
            if item.id == application_id:
                return item
        return None

    def get_filtered_applications(self) -> list[JobApplication]:
        state = self._state
        return derive_view(state.applications, state.search_query, state.filters, state.sort)

    def get_board(self) -> dict[str, list[JobApplication]]:
        return group_by_status(self.get_filtered_applications())
