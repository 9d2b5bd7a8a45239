from pathlib import Path

import pytest

from jobtrack.auth import StaticIdentity
from jobtrack.core.forms import ResumeFile, submit_application_form
from jobtrack.core.state import ApplicationStore
from jobtrack.db.repositories import ApplicationRepository
from jobtrack.errors import AuthRequiredError, StoreError
from jobtrack.storage.resumes import LocalResumeStorage, ResumeUploader
from jobtrack.types import ApplicationUpdate, FilterOptions, SortOptions

PDF = b"%PDF-1.7\n%fake\n"


def _store(session_factory, tmp_path: Path) -> ApplicationStore:
    identity = StaticIdentity("user-1")
    repository = ApplicationRepository(session_factory, owner_id="user-1")
    return ApplicationStore(repository, identity, resume_storage=LocalResumeStorage(tmp_path))


@pytest.mark.asyncio
async def test_fetch_marks_hydrated(session_factory, make_form, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    await store.repository.create(make_form(), "user-1")

    assert store.state.has_hydrated is False
    await store.fetch_applications()

    assert store.state.has_hydrated is True
    assert store.state.is_loading is False
    assert len(store.state.applications) == 1


@pytest.mark.asyncio
async def test_fetch_failure_keeps_previous_list(session_factory, make_form, tmp_path: Path, monkeypatch) -> None:
    store = _store(session_factory, tmp_path)
    await store.add_application(make_form())

    async def broken() -> list:
        raise StoreError("database unavailable")

    monkeypatch.setattr(store.repository, "get_all", broken)
    await store.fetch_applications()

    assert store.state.error == "database unavailable"
    assert store.state.has_hydrated is True
    assert len(store.state.applications) == 1


@pytest.mark.asyncio
async def test_add_prepends_and_returns_id(session_factory, make_form, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    first = await store.add_application(make_form(company_name="First"))
    second = await store.add_application(make_form(company_name="Second"))

    assert [item.id for item in store.state.applications] == [second, first]
    assert store.get_application_by_id(first).company_name == "First"


@pytest.mark.asyncio
async def test_add_requires_identity(session_factory, make_form, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    store.identity.sign_out()

    with pytest.raises(AuthRequiredError):
        await store.add_application(make_form())

    assert store.state.error == "Not authenticated"
    store.clear_error()
    assert store.state.error is None
    assert store.state.is_loading is False
    assert store.state.applications == ()


@pytest.mark.asyncio
async def test_update_replaces_record_in_place(session_factory, make_form, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    first = await store.add_application(make_form(company_name="First"))
    await store.add_application(make_form(company_name="Second"))

    updated = await store.update_application(first, ApplicationUpdate(position="Staff Engineer"))

    assert updated.position == "Staff Engineer"
    assert store.state.applications[1] == updated


@pytest.mark.asyncio
async def test_update_failure_records_error_and_raises(session_factory, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    with pytest.raises(StoreError):
        await store.update_application("missing", ApplicationUpdate(status="offer"))
    assert "missing" in store.state.error


@pytest.mark.asyncio
async def test_delete_removes_resume_object_first(session_factory, make_form, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    uploader = ResumeUploader(store.resume_storage, store.identity, max_bytes=1024)
    application_id = await submit_application_form(
        store, uploader, make_form(), resume=ResumeFile(PDF, "application/pdf")
    )
    resume_file = tmp_path / "user-1" / application_id / "resume.pdf"
    assert resume_file.exists()

    await store.delete_application(application_id)

    assert not resume_file.exists()
    assert store.get_application_by_id(application_id) is None
    assert await store.repository.get_by_id(application_id) is None


@pytest.mark.asyncio
async def test_delete_keeps_record_when_resume_removal_fails(session_factory, make_form, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    application_id = await store.add_application(make_form())
    await store.update_application(application_id, ApplicationUpdate(resume_path="../escape.pdf"))

    with pytest.raises(StoreError):
        await store.delete_application(application_id)

    assert store.get_application_by_id(application_id) is not None
    assert await store.repository.get_by_id(application_id) is not None
    assert store.state.is_loading is False
    assert store.state.error is not None


@pytest.mark.asyncio
async def test_submit_new_form_attaches_resume_path(session_factory, make_form, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    uploader = ResumeUploader(store.resume_storage, store.identity, max_bytes=1024)

    application_id = await submit_application_form(
        store, uploader, make_form(), resume=ResumeFile(PDF, "application/pdf")
    )

    stored = await store.repository.get_by_id(application_id)
    assert stored.resume_path == f"user-1/{application_id}/resume.pdf"
    assert store.get_application_by_id(application_id).resume_path == stored.resume_path


@pytest.mark.asyncio
async def test_submit_edit_uploads_then_updates(session_factory, make_form, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    uploader = ResumeUploader(store.resume_storage, store.identity, max_bytes=1024)
    application_id = await store.add_application(make_form(notes="first draft"))
    existing = store.get_application_by_id(application_id)

    returned = await submit_application_form(
        store,
        uploader,
        make_form(notes="final", position="Lead Engineer"),
        resume=ResumeFile(PDF, "application/pdf"),
        existing=existing,
    )

    stored = await store.repository.get_by_id(application_id)
    assert returned == application_id
    assert stored.position == "Lead Engineer"
    assert stored.notes == "final"
    assert stored.resume_path == f"user-1/{application_id}/resume.pdf"


@pytest.mark.asyncio
async def test_filtered_view_follows_container_state(session_factory, make_form, tmp_path: Path) -> None:
    store = _store(session_factory, tmp_path)
    await store.add_application(make_form(company_name="Acme", status="rejected"))
    kept = await store.add_application(make_form(company_name="Globex"))

    store.set_filters(FilterOptions(hide_rejected=True))
    store.set_sort(SortOptions(field="company_name", order="asc"))
    assert [item.id for item in store.get_filtered_applications()] == [kept]

    store.set_search_query("acme")
    assert store.get_filtered_applications() == []

    store.clear_filters()
    assert store.state.search_query == ""
    assert len(store.get_filtered_applications()) == 2
    assert len(store.get_board()["rejected"]) == 1
