from __future__ import annotations

import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from jobtrack.core.constants import STATUS_ORDER
from jobtrack.db.repositories import ApplicationRepository
from jobtrack.types import ApplicationUpdate, JobApplication

if TYPE_CHECKING:
    from jobtrack.core.state import ApplicationStore

logger = logging.getLogger(__name__)


class MutationPhase(str, Enum):
    SKIPPED = "skipped"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    SUPERSEDED = "superseded"


@dataclass(slots=True)
class MutationOutcome:
    application_id: str
    field: str
    phase: MutationPhase
    value: Any = None
    error: str | None = None


@dataclass(slots=True)
class _RecordTrack:
    baseline: JobApplication
    latest: int = 0
    confirmed: int = 0
    in_flight: int = 0
    latest_settled: bool = False


class OptimisticCoordinator:
    """Local-first mutations for status, notes and pin changes.

    Every mutation moves through pending -> committed or pending -> rolled_back.
    Each record carries a monotonic sequence token; a response that belongs to
    a superseded token never overwrites newer optimistic state, and a failed
    latest mutation restores the last server-confirmed snapshot.
    """

    def __init__(self, store: ApplicationStore, repository: ApplicationRepository):
        self.store = store
        self.repository = repository
        self._tracks: dict[str, _RecordTrack] = {}
        self._sequence = itertools.count(1)

    @property
    def tracked_ids(self) -> frozenset[str]:
        return frozenset(self._tracks)

    def is_pending(self, application_id: str) -> bool:
        track = self._tracks.get(application_id)
        return bool(track and track.in_flight)

    async def update_status(self, application_id: str, status: str) -> MutationOutcome:
        if status not in STATUS_ORDER:
            raise ValueError(f"unknown application status '{status}'")

        current = self.store.get_application_by_id(application_id)
        if current is None or current.status == status:
            return MutationOutcome(application_id, "status", MutationPhase.SKIPPED, status)

        return await self._run(
            current,
            "status",
            status,
            current.model_copy(update={"status": status}),
            lambda: self.repository.update(application_id, ApplicationUpdate(status=status)),
        )

    async def update_notes(self, application_id: str, notes: str) -> MutationOutcome:
        current = self.store.get_application_by_id(application_id)
        next_notes = notes.strip()
        if current is None:
            return MutationOutcome(application_id, "notes", MutationPhase.SKIPPED, next_notes)

        return await self._run(
            current,
            "notes",
            next_notes,
            current.model_copy(update={"notes": next_notes or None}),
            lambda: self.repository.update(application_id, ApplicationUpdate(notes=next_notes)),
        )

    async def toggle_pin(self, application_id: str) -> MutationOutcome:
        current = self.store.get_application_by_id(application_id)
        if current is None:
            return MutationOutcome(application_id, "is_pinned", MutationPhase.SKIPPED)

        was_pinned = current.is_pinned
        return await self._run(
            current,
            "is_pinned",
            not was_pinned,
            current.model_copy(update={"is_pinned": not was_pinned}),
            lambda: self.repository.toggle_pin(application_id, was_pinned),
        )

    def _begin(self, current: JobApplication) -> int:
        track = self._tracks.get(current.id)
        if track is None or track.in_flight == 0:
            track = _RecordTrack(baseline=current)
            self._tracks[current.id] = track

        sequence = next(self._sequence)
        track.latest = sequence
        track.latest_settled = False
        track.in_flight += 1
        return sequence

    async def _run(
        self,
        current: JobApplication,
        field: str,
        value: Any,
        optimistic: JobApplication,
        remote: Callable[[], Awaitable[JobApplication]],
    ) -> MutationOutcome:
        sequence = self._begin(current)
        self.store.replace_application(current.id, optimistic)

        try:
            confirmed = await remote()
        except Exception as exc:
            outcome = self._rollback(current.id, field, value, sequence, exc)
        else:
            outcome = self._commit(current.id, field, value, sequence, confirmed)
        self._release(current.id)
        return outcome

    def _release(self, application_id: str) -> None:
        track = self._tracks.get(application_id)
        if track is not None and track.in_flight == 0:
            del self._tracks[application_id]

    def _commit(
        self, application_id: str, field: str, value: Any, sequence: int, confirmed: JobApplication
    ) -> MutationOutcome:
        track = self._tracks[application_id]
        track.in_flight -= 1
        if sequence < track.confirmed:
            return MutationOutcome(application_id, field, MutationPhase.SUPERSEDED, value)

        track.baseline = confirmed
        track.confirmed = sequence
        if sequence == track.latest or track.latest_settled:
            track.latest_settled = True
            self.store.replace_application(application_id, confirmed)
            return MutationOutcome(application_id, field, MutationPhase.COMMITTED, value)

        logger.debug("Discarding stale %s confirmation for application %s", field, application_id)
        return MutationOutcome(application_id, field, MutationPhase.SUPERSEDED, value)

    def _rollback(
        self, application_id: str, field: str, value: Any, sequence: int, exc: Exception
    ) -> MutationOutcome:
        track = self._tracks[application_id]
        track.in_flight -= 1
        message = str(exc) or exc.__class__.__name__
        self.store.record_error(message)

        if sequence != track.latest:
            logger.warning("Superseded %s update for application %s failed: %s", field, application_id, message)
            return MutationOutcome(application_id, field, MutationPhase.SUPERSEDED, value, message)

        logger.warning("Rolling back %s update for application %s: %s", field, application_id, message)
        track.latest_settled = True
        self.store.replace_application(application_id, track.baseline)
        return MutationOutcome(application_id, field, MutationPhase.ROLLED_BACK, value, message)
