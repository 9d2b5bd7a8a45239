import asyncio
from datetime import UTC, datetime

import pytest

from jobtrack.auth import StaticIdentity
from jobtrack.core.optimistic import MutationPhase
from jobtrack.core.state import ApplicationState, ApplicationStore
from jobtrack.errors import StoreError
from jobtrack.types import ApplicationUpdate, JobApplication


class GatedRepository:
    """In-memory record store whose writes wait on per-call gates."""

    def __init__(self, records: list[JobApplication]):
        self.records = {record.id: record for record in records}
        self.gates: list[asyncio.Event] = []
        self.failures: list[bool] = []
        self.calls: list[tuple[str, object]] = []

    async def _wait(self) -> None:
        gate = self.gates.pop(0) if self.gates else None
        fail = self.failures.pop(0) if self.failures else False
        if gate is not None:
            await gate.wait()
        if fail:
            raise StoreError("network unreachable")

    async def get_all(self) -> list[JobApplication]:
        return list(self.records.values())

    async def update(self, application_id: str, data: ApplicationUpdate) -> JobApplication:
        self.calls.append(("update", data.changes()))
        await self._wait()
        updated = self.records[application_id].model_copy(
            update={**data.changes(), "updated_at": datetime.now(UTC)}
        )
        self.records[application_id] = updated
        return updated

    async def toggle_pin(self, application_id: str, is_pinned: bool) -> JobApplication:
        self.calls.append(("toggle_pin", is_pinned))
        await self._wait()
        updated = self.records[application_id].model_copy(update={"is_pinned": not is_pinned})
        self.records[application_id] = updated
        return updated


async def _store_with(records: list[JobApplication]) -> tuple[ApplicationStore, GatedRepository]:
    repository = GatedRepository(records)
    store = ApplicationStore(repository, StaticIdentity("user-1"))
    await store.fetch_applications()
    return store, repository


@pytest.mark.asyncio
async def test_status_change_commits_server_record(make_application) -> None:
    record = make_application(status="applied")
    store, repository = await _store_with([record])

    outcome = await store.update_application_status(record.id, "hr_interview")

    assert outcome.phase is MutationPhase.COMMITTED
    assert store.get_application_by_id(record.id) == repository.records[record.id]
    assert store.get_application_by_id(record.id).status == "hr_interview"
    assert store.state.error is None


@pytest.mark.asyncio
async def test_failed_status_change_is_visible_then_rolled_back(make_application) -> None:
    record = make_application(status="applied")
    store, repository = await _store_with([record])
    gate = asyncio.Event()
    repository.gates.append(gate)
    repository.failures.append(True)

    task = asyncio.create_task(store.update_application_status(record.id, "offer"))
    await asyncio.sleep(0)

    assert store.get_application_by_id(record.id).status == "offer"
    assert store.mutations.is_pending(record.id)

    gate.set()
    outcome = await task

    assert outcome.phase is MutationPhase.ROLLED_BACK
    assert outcome.error == "network unreachable"
    assert store.get_application_by_id(record.id) == record
    assert store.state.error == "network unreachable"
    assert not store.mutations.is_pending(record.id)


@pytest.mark.asyncio
async def test_unchanged_status_is_a_no_op(make_application) -> None:
    record = make_application(status="offer")
    store, repository = await _store_with([record])
    before = store.state

    outcome = await store.update_application_status(record.id, "offer")

    assert outcome.phase is MutationPhase.SKIPPED
    assert store.state is before
    assert repository.calls == []


@pytest.mark.asyncio
async def test_missing_record_is_a_no_op(make_application) -> None:
    store, repository = await _store_with([make_application()])
    outcome = await store.update_application_status("missing", "offer")
    assert outcome.phase is MutationPhase.SKIPPED
    assert repository.calls == []


@pytest.mark.asyncio
async def test_unknown_status_is_rejected(make_application) -> None:
    record = make_application()
    store, _ = await _store_with([record])
    with pytest.raises(ValueError):
        await store.update_application_status(record.id, "ghosted")


@pytest.mark.asyncio
async def test_stale_confirmation_does_not_overwrite_newer_state(make_application) -> None:
    record = make_application(status="applied")
    store, repository = await _store_with([record])
    first_gate, second_gate = asyncio.Event(), asyncio.Event()
    repository.gates.extend([first_gate, second_gate])

    first = asyncio.create_task(store.update_application_status(record.id, "offer"))
    await asyncio.sleep(0)
    second = asyncio.create_task(store.update_application_status(record.id, "rejected"))
    await asyncio.sleep(0)
    assert store.get_application_by_id(record.id).status == "rejected"

    second_gate.set()
    assert (await second).phase is MutationPhase.COMMITTED
    first_gate.set()
    assert (await first).phase is MutationPhase.SUPERSEDED

    assert store.get_application_by_id(record.id).status == "rejected"


@pytest.mark.asyncio
async def test_failure_of_superseded_mutation_keeps_newer_state(make_application) -> None:
    record = make_application(status="applied")
    store, repository = await _store_with([record])
    first_gate, second_gate = asyncio.Event(), asyncio.Event()
    repository.gates.extend([first_gate, second_gate])
    repository.failures.extend([True, False])

    first = asyncio.create_task(store.update_application_status(record.id, "offer"))
    await asyncio.sleep(0)
    second = asyncio.create_task(store.update_application_status(record.id, "accepted"))
    await asyncio.sleep(0)

    first_gate.set()
    assert (await first).phase is MutationPhase.SUPERSEDED
    assert store.get_application_by_id(record.id).status == "accepted"

    second_gate.set()
    assert (await second).phase is MutationPhase.COMMITTED
    assert store.get_application_by_id(record.id).status == "accepted"


@pytest.mark.asyncio
async def test_latest_failure_restores_last_confirmed_snapshot(make_application) -> None:
    record = make_application(status="applied")
    store, repository = await _store_with([record])
    first_gate, second_gate = asyncio.Event(), asyncio.Event()
    repository.gates.extend([first_gate, second_gate])
    repository.failures.extend([False, True])

    first = asyncio.create_task(store.update_application_status(record.id, "offer"))
    await asyncio.sleep(0)
    second = asyncio.create_task(store.update_application_status(record.id, "accepted"))
    await asyncio.sleep(0)

    first_gate.set()
    await first
    assert store.get_application_by_id(record.id).status == "accepted"

    second_gate.set()
    assert (await second).phase is MutationPhase.ROLLED_BACK
    assert store.get_application_by_id(record.id).status == "offer"


@pytest.mark.asyncio
async def test_notes_are_trimmed_before_sending(make_application) -> None:
    record = make_application(notes="old")
    store, repository = await _store_with([record])

    outcome = await store.update_application_notes(record.id, "  call back Friday  ")

    assert outcome.phase is MutationPhase.COMMITTED
    assert repository.calls == [("update", {"notes": "call back Friday"})]
    assert store.get_application_by_id(record.id).notes == "call back Friday"


@pytest.mark.asyncio
async def test_failed_notes_change_restores_previous_notes(make_application) -> None:
    record = make_application(notes="old")
    store, repository = await _store_with([record])
    repository.failures.append(True)

    outcome = await store.update_application_notes(record.id, "new")

    assert outcome.phase is MutationPhase.ROLLED_BACK
    assert store.get_application_by_id(record.id).notes == "old"


@pytest.mark.asyncio
async def test_toggle_pin_round_trip(make_application) -> None:
    record = make_application(is_pinned=False)
    store, repository = await _store_with([record])

    assert (await store.toggle_pin(record.id)).phase is MutationPhase.COMMITTED
    assert store.get_application_by_id(record.id).is_pinned is True
    assert repository.calls == [("toggle_pin", False)]

    repository.failures.append(True)
    assert (await store.toggle_pin(record.id)).phase is MutationPhase.ROLLED_BACK
    assert store.get_application_by_id(record.id).is_pinned is True


@pytest.mark.asyncio
async def test_listeners_see_optimistic_and_final_snapshots(make_application) -> None:
    record = make_application(status="applied")
    store, repository = await _store_with([record])
    repository.failures.append(True)
    seen: list[ApplicationState] = []
    unsubscribe = store.subscribe(seen.append)

    await store.update_application_status(record.id, "offer")
    unsubscribe()

    statuses = [state.applications[0].status for state in seen]
    assert "offer" in statuses
    assert statuses[-1] == "applied"
    assert all(state.is_loading is False for state in seen)


@pytest.mark.asyncio
async def test_notes_and_pin_mutations_never_set_loading(make_application) -> None:
    record = make_application(notes="old", is_pinned=False)
    store, repository = await _store_with([record])
    seen: list[ApplicationState] = []
    unsubscribe = store.subscribe(seen.append)

    await store.update_application_notes(record.id, "new")
    repository.failures.append(True)
    await store.toggle_pin(record.id)
    unsubscribe()

    assert len(seen) >= 4
    assert all(state.is_loading is False for state in seen)


@pytest.mark.asyncio
async def test_settled_mutations_release_their_tracks(make_application) -> None:
    record = make_application(status="applied")
    store, repository = await _store_with([record])
    first_gate, second_gate = asyncio.Event(), asyncio.Event()
    repository.gates.extend([first_gate, second_gate])
    repository.failures.extend([False, True])

    first = asyncio.create_task(store.update_application_status(record.id, "offer"))
    await asyncio.sleep(0)
    second = asyncio.create_task(store.update_application_status(record.id, "accepted"))
    await asyncio.sleep(0)
    assert store.mutations.tracked_ids == {record.id}

    first_gate.set()
    await first
    assert store.mutations.tracked_ids == {record.id}

    second_gate.set()
    assert (await second).phase is MutationPhase.ROLLED_BACK
    assert store.mutations.tracked_ids == frozenset()

    assert (await store.toggle_pin(record.id)).phase is MutationPhase.COMMITTED
    assert store.mutations.tracked_ids == frozenset()
