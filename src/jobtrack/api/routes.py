from __future__ import annotations

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from jobtrack.api.deps import get_tracker, require_application
from jobtrack.api.schemas import (
    DeleteResponse,
    MutationResponse,
    NotesChangeRequest,
    SalaryResponse,
    SettingsUpdateRequest,
    StatusChangeRequest,
    TaxonomyEntryRequest,
    TaxonomyResponse,
)
from jobtrack.core.constants import RESUME_CONTENT_TYPE
from jobtrack.core.forms import validate_application_form
from jobtrack.core.optimistic import MutationOutcome, MutationPhase
from jobtrack.core.runtime import TrackerSession
from jobtrack.core.salary import format_salary_expectation, parse_salary_expectation
from jobtrack.core.view import derive_view, group_by_status
from jobtrack.errors import AuthRequiredError, FormValidationError, StoreError
from jobtrack.types import (
    AppSettings,
    ApplicationStatus,
    ApplicationUpdate,
    DateRange,
    FilterOptions,
    JobApplication,
    SortField,
    SortOptions,
    SortOrder,
    WorkType,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


def _store_failure(exc: StoreError) -> HTTPException:
    if isinstance(exc, AuthRequiredError):
        return HTTPException(status_code=401, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


def _form_failure(exc: FormValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail=exc.errors)


def view_query(
    tracker: TrackerSession = Depends(get_tracker),
    search: str = "",
    status: list[ApplicationStatus] | None = Query(default=None),
    source: list[str] | None = Query(default=None),
    work_type: list[WorkType] | None = Query(default=None, alias="workType"),
    industry: list[str] | None = Query(default=None),
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    pinned: bool | None = None,
    hide_rejected: bool | None = Query(default=None, alias="hideRejected"),
    sort_field: SortField = Query(default="application_date", alias="sort"),
    sort_order: SortOrder = Query(default="desc", alias="order"),
) -> list[JobApplication]:
    date_range = DateRange(from_=date_from, to=date_to) if date_from or date_to else None
    filters = FilterOptions(
        status=status,
        source=source,
        work_type=work_type,
        industry=industry,
        date_range=date_range,
        is_pinned=pinned,
        hide_rejected=tracker.store.state.filters.hide_rejected if hide_rejected is None else hide_rejected,
    )
    return derive_view(
        tracker.store.state.applications,
        search,
        filters,
        SortOptions(field=sort_field, order=sort_order),
    )


def _mutation_response(tracker: TrackerSession, outcome: MutationOutcome) -> MutationResponse:
    if outcome.phase is MutationPhase.ROLLED_BACK:
        raise HTTPException(status_code=502, detail=outcome.error)
    return MutationResponse(
        phase=outcome.phase.value,
        application=tracker.store.get_application_by_id(outcome.application_id),
        error=outcome.error,
    )


@router.get("/applications", response_model=list[JobApplication])
def list_applications(view: list[JobApplication] = Depends(view_query)) -> list[JobApplication]:
    return view


@router.get("/applications/board", response_model=dict[str, list[JobApplication]])
def application_board(view: list[JobApplication] = Depends(view_query)) -> dict[str, list[JobApplication]]:
    return group_by_status(view)


@router.get("/applications/{application_id}", response_model=JobApplication)
def get_application(application_id: str, tracker: TrackerSession = Depends(get_tracker)) -> JobApplication:
    return require_application(tracker, application_id)


@router.post("/applications", response_model=JobApplication)
async def create_application(
    payload: dict[str, Any] = Body(...),
    tracker: TrackerSession = Depends(get_tracker),
) -> JobApplication:
    try:
        data = validate_application_form(payload)
        application_id = await tracker.store.add_application(data)
    except FormValidationError as exc:
        raise _form_failure(exc) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
    return require_application(tracker, application_id)


@router.patch("/applications/{application_id}", response_model=JobApplication)
async def patch_application(
    application_id: str,
    payload: dict[str, Any] = Body(...),
    tracker: TrackerSession = Depends(get_tracker),
) -> JobApplication:
    require_application(tracker, application_id)
    try:
        update = ApplicationUpdate.model_validate(payload)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if update.is_empty():
        return require_application(tracker, application_id)

    try:
        return await tracker.store.update_application(application_id, update)
    except StoreError as exc:
        raise _store_failure(exc) from exc


@router.delete("/applications/{application_id}", response_model=DeleteResponse)
async def delete_application(application_id: str, tracker: TrackerSession = Depends(get_tracker)) -> DeleteResponse:
    require_application(tracker, application_id)
    try:
        await tracker.store.delete_application(application_id)
    except StoreError as exc:
        raise _store_failure(exc) from exc
    return DeleteResponse(deleted=application_id)


@router.post("/applications/{application_id}/status", response_model=MutationResponse)
async def change_status(
    application_id: str,
    payload: StatusChangeRequest,
    tracker: TrackerSession = Depends(get_tracker),
) -> MutationResponse:
    require_application(tracker, application_id)
    outcome = await tracker.store.update_application_status(application_id, payload.status)
    return _mutation_response(tracker, outcome)


@router.put("/applications/{application_id}/notes", response_model=MutationResponse)
async def change_notes(
    application_id: str,
    payload: NotesChangeRequest,
    tracker: TrackerSession = Depends(get_tracker),
) -> MutationResponse:
    require_application(tracker, application_id)
    outcome = await tracker.store.update_application_notes(application_id, payload.notes)
    return _mutation_response(tracker, outcome)


@router.post("/applications/{application_id}/pin", response_model=MutationResponse)
async def toggle_pin(application_id: str, tracker: TrackerSession = Depends(get_tracker)) -> MutationResponse:
    require_application(tracker, application_id)
    outcome = await tracker.store.toggle_pin(application_id)
    return _mutation_response(tracker, outcome)


@router.put("/applications/{application_id}/resume", response_model=JobApplication)
async def upload_resume(
    application_id: str,
    request: Request,
    tracker: TrackerSession = Depends(get_tracker),
) -> JobApplication:
    require_application(tracker, application_id)
    content_type = request.headers.get("content-type", "").split(";")[0].strip()
    content = await request.body()
    try:
        resume_path = await tracker.uploader.upload(application_id, content, content_type)
        return await tracker.store.update_application(application_id, ApplicationUpdate(resume_path=resume_path))
    except FormValidationError as exc:
        raise _form_failure(exc) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc


@router.get("/applications/{application_id}/resume")
async def download_resume(application_id: str, tracker: TrackerSession = Depends(get_tracker)) -> Response:
    application = require_application(tracker, application_id)
    if not application.resume_path:
        raise HTTPException(status_code=404, detail="No resume attached")
    try:
        content = await tracker.resumes.download(application.resume_path)
    except StoreError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(content=content, media_type=RESUME_CONTENT_TYPE)


def _taxonomy(tracker: TrackerSession) -> TaxonomyResponse:
    settings = tracker.taxonomy.settings
    return TaxonomyResponse(
        sources=tracker.taxonomy.get_all_sources(),
        industries=tracker.taxonomy.get_all_industries(),
        custom_sources=settings.custom_sources,
        custom_industries=settings.custom_industries,
    )


async def _save_settings(tracker: TrackerSession) -> None:
    try:
        await tracker.save_settings()
    except StoreError as exc:
        raise _store_failure(exc) from exc


@router.get("/taxonomy", response_model=TaxonomyResponse)
def get_taxonomy(tracker: TrackerSession = Depends(get_tracker)) -> TaxonomyResponse:
    return _taxonomy(tracker)


@router.post("/taxonomy/sources", response_model=TaxonomyResponse)
async def add_source(payload: TaxonomyEntryRequest, tracker: TrackerSession = Depends(get_tracker)) -> TaxonomyResponse:
    tracker.taxonomy.add_custom_source(payload.value)
    await _save_settings(tracker)
    return _taxonomy(tracker)


@router.delete("/taxonomy/sources/{value}", response_model=TaxonomyResponse)
async def remove_source(value: str, tracker: TrackerSession = Depends(get_tracker)) -> TaxonomyResponse:
    tracker.taxonomy.remove_custom_source(value)
    await _save_settings(tracker)
    return _taxonomy(tracker)


@router.post("/taxonomy/industries", response_model=TaxonomyResponse)
async def add_industry(
    payload: TaxonomyEntryRequest, tracker: TrackerSession = Depends(get_tracker)
) -> TaxonomyResponse:
    tracker.taxonomy.add_custom_industry(payload.value)
    await _save_settings(tracker)
    return _taxonomy(tracker)


@router.delete("/taxonomy/industries/{value}", response_model=TaxonomyResponse)
async def remove_industry(value: str, tracker: TrackerSession = Depends(get_tracker)) -> TaxonomyResponse:
    tracker.taxonomy.remove_custom_industry(value)
    await _save_settings(tracker)
    return _taxonomy(tracker)


@router.get("/settings", response_model=AppSettings)
def get_app_settings(tracker: TrackerSession = Depends(get_tracker)) -> AppSettings:
    return tracker.taxonomy.settings


@router.patch("/settings", response_model=AppSettings)
async def update_app_settings(
    payload: SettingsUpdateRequest, tracker: TrackerSession = Depends(get_tracker)
) -> AppSettings:
    tracker.taxonomy.update_settings(**payload.model_dump(exclude_unset=True, exclude_none=True))
    await _save_settings(tracker)
    return tracker.taxonomy.settings


@router.get("/salary/parse", response_model=SalaryResponse)
def parse_salary(value: str = "", tracker: TrackerSession = Depends(get_tracker)) -> SalaryResponse:
    parsed = parse_salary_expectation(value, tracker.settings.default_currency)
    return SalaryResponse(
        currency=parsed.currency,
        amount=parsed.amount,
        formatted=format_salary_expectation(parsed.currency, parsed.amount),
    )
