from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from datetime import date
from pathlib import Path
from typing import Any, TypeVar

import typer
import uvicorn
from pydantic import ValidationError

from jobtrack.api.app import create_app
from jobtrack.config import get_settings
from jobtrack.core.constants import RESUME_CONTENT_TYPE, STATUS_LABELS, WORK_TYPE_LABELS
from jobtrack.core.forms import ResumeFile, form_errors, submit_application_form, validate_application_form
from jobtrack.core.preferences import ViewPreferences
from jobtrack.core.runtime import TrackerSession, open_session
from jobtrack.core.view import derive_view
from jobtrack.db.init import init_database
from jobtrack.db.session import create_engine_for
from jobtrack.errors import FormValidationError, StoreError
from jobtrack.logging_config import configure_logging
from jobtrack.types import FilterOptions, JobApplication, SortOptions

T = TypeVar("T")

app = typer.Typer(help="JobTrack CLI")
apps_app = typer.Typer(help="Manage job applications")
taxonomy_app = typer.Typer(help="Sources and industries")
view_app = typer.Typer(help="Session-local view preferences")

app.add_typer(apps_app, name="apps")
app.add_typer(taxonomy_app, name="taxonomy")
app.add_typer(view_app, name="view")


def _echo(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _dump(application: JobApplication | None) -> dict[str, Any] | None:
    if application is None:
        return None
    return application.model_dump(mode="json", by_alias=True)


def with_tracker(action: Callable[[TrackerSession], Awaitable[T]]) -> T:
    configure_logging()

    async def _main() -> T:
        tracker = await open_session(get_settings())
        try:
            await tracker.store.fetch_applications()
            return await action(tracker)
        finally:
            await tracker.close()

    try:
        return asyncio.run(_main())
    except FormValidationError as exc:
        typer.echo(json.dumps({"ok": False, "errors": exc.errors}, indent=2), err=True)
        raise typer.Exit(code=1) from exc
    except StoreError as exc:
        typer.echo(json.dumps({"ok": False, "error": str(exc)}, indent=2), err=True)
        raise typer.Exit(code=1) from exc


def _require(tracker: TrackerSession, application_id: str) -> JobApplication:
    application = tracker.store.get_application_by_id(application_id)
    if application is None:
        raise typer.BadParameter(f"application {application_id} not found")
    return application


@app.command("init")
def init_cmd() -> None:
    """Initialize directories and database tables."""
    configure_logging()
    settings = get_settings()

    async def _init() -> list[str]:
        engine = create_engine_for(settings)
        try:
            return await init_database(engine, settings)
        finally:
            await engine.dispose()

    tables = asyncio.run(_init())
    _echo({"ok": True, "database_url": settings.database_url, "tables": tables})


@apps_app.command("list")
def apps_list(
    search: str = typer.Option("", "--search"),
    status: list[str] | None = typer.Option(None, "--status"),
    source: list[str] | None = typer.Option(None, "--source"),
    pinned: bool = typer.Option(False, "--pinned"),
    hide_rejected: bool | None = typer.Option(None, "--hide-rejected/--show-rejected"),
    sort: str = typer.Option("application_date", "--sort"),
    order: str = typer.Option("desc", "--order"),
) -> None:
    async def _list(tracker: TrackerSession) -> list[JobApplication]:
        try:
            filters = FilterOptions(
                status=status or None,
                source=source or None,
                is_pinned=True if pinned else None,
                hide_rejected=tracker.store.state.filters.hide_rejected if hide_rejected is None else hide_rejected,
            )
            ordering = SortOptions(field=sort, order=order)
        except ValidationError as exc:
            raise FormValidationError(form_errors(exc)) from exc
        return derive_view(tracker.store.state.applications, search, filters, ordering)

    view = with_tracker(_list)
    _echo(
        [
            {
                "id": item.id,
                "company": item.company_name,
                "position": item.position,
                "status": item.status,
                "status_label": STATUS_LABELS[item.status],
                "work_type": WORK_TYPE_LABELS[item.work_type],
                "application_date": item.application_date.isoformat(),
                "is_pinned": item.is_pinned,
            }
            for item in view
        ]
    )


@apps_app.command("show")
def apps_show(application_id: str = typer.Argument(...)) -> None:
    async def _show(tracker: TrackerSession) -> JobApplication:
        return _require(tracker, application_id)

    _echo(_dump(with_tracker(_show)))


@apps_app.command("add")
def apps_add(
    company: str = typer.Option(..., "--company"),
    location: str = typer.Option(..., "--location"),
    position: str = typer.Option(..., "--position"),
    industry: str = typer.Option("Technology", "--industry"),
    source: str = typer.Option("LinkedIn", "--source"),
    work_type: str = typer.Option("remote", "--work-type"),
    applied_on: str = typer.Option("", "--date"),
    status: str = typer.Option("applied", "--status"),
    skills: list[str] | None = typer.Option(None, "--skill"),
    salary: str = typer.Option("", "--salary"),
    url: str = typer.Option("", "--url"),
    notes: str = typer.Option("", "--notes"),
    resume: Path | None = typer.Option(None, "--resume", exists=True, readable=True, dir_okay=False),
) -> None:
    values = {
        "company_name": company,
        "company_location": location,
        "company_industry": industry,
        "position": position,
        "skills": skills or [],
        "application_date": applied_on or date.today().isoformat(),
        "salary_expectation": salary or None,
        "job_posting_url": url or None,
        "source": source,
        "work_type": work_type,
        "notes": notes or None,
        "status": status,
    }
    resume_file = None
    if resume is not None:
        content_type = RESUME_CONTENT_TYPE if resume.suffix.lower() == ".pdf" else "application/octet-stream"
        resume_file = ResumeFile(resume.read_bytes(), content_type, resume.name)

    async def _add(tracker: TrackerSession) -> JobApplication | None:
        data = validate_application_form(values)
        application_id = await submit_application_form(tracker.store, tracker.uploader, data, resume=resume_file)
        return tracker.store.get_application_by_id(application_id)

    _echo(_dump(with_tracker(_add)))


@apps_app.command("status")
def apps_status(application_id: str = typer.Argument(...), status: str = typer.Argument(...)) -> None:
    async def _status(tracker: TrackerSession) -> dict[str, Any]:
        _require(tracker, application_id)
        try:
            outcome = await tracker.store.update_application_status(application_id, status)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        return {"id": application_id, "phase": outcome.phase.value, "status": status, "error": outcome.error}

    result = with_tracker(_status)
    _echo(result)
    if result["phase"] == "rolled_back":
        raise typer.Exit(code=1)


@apps_app.command("pin")
def apps_pin(application_id: str = typer.Argument(...)) -> None:
    async def _pin(tracker: TrackerSession) -> dict[str, Any]:
        _require(tracker, application_id)
        outcome = await tracker.store.toggle_pin(application_id)
        return {"id": application_id, "phase": outcome.phase.value, "is_pinned": outcome.value, "error": outcome.error}

    result = with_tracker(_pin)
    _echo(result)
    if result["phase"] == "rolled_back":
        raise typer.Exit(code=1)


@apps_app.command("notes")
def apps_notes(application_id: str = typer.Argument(...), notes: str = typer.Argument("")) -> None:
    async def _notes(tracker: TrackerSession) -> dict[str, Any]:
        _require(tracker, application_id)
        outcome = await tracker.store.update_application_notes(application_id, notes)
        return {"id": application_id, "phase": outcome.phase.value, "notes": outcome.value, "error": outcome.error}

    result = with_tracker(_notes)
    _echo(result)
    if result["phase"] == "rolled_back":
        raise typer.Exit(code=1)


@apps_app.command("delete")
def apps_delete(application_id: str = typer.Argument(...)) -> None:
    async def _delete(tracker: TrackerSession) -> None:
        _require(tracker, application_id)
        await tracker.store.delete_application(application_id)

    with_tracker(_delete)
    _echo({"deleted": application_id})


@taxonomy_app.command("sources")
def taxonomy_sources() -> None:
    async def _sources(tracker: TrackerSession) -> list[str]:
        return tracker.taxonomy.get_all_sources()

    _echo(with_tracker(_sources))


@taxonomy_app.command("industries")
def taxonomy_industries() -> None:
    async def _industries(tracker: TrackerSession) -> list[str]:
        return tracker.taxonomy.get_all_industries()

    _echo(with_tracker(_industries))


def _edit_taxonomy(change: Callable[[TrackerSession], None]) -> dict[str, list[str]]:
    async def _edit(tracker: TrackerSession) -> dict[str, list[str]]:
        change(tracker)
        await tracker.save_settings()
        settings = tracker.taxonomy.settings
        return {"custom_sources": settings.custom_sources, "custom_industries": settings.custom_industries}

    return with_tracker(_edit)


@taxonomy_app.command("add-source")
def taxonomy_add_source(value: str = typer.Argument(...)) -> None:
    _echo(_edit_taxonomy(lambda tracker: tracker.taxonomy.add_custom_source(value)))


@taxonomy_app.command("remove-source")
def taxonomy_remove_source(value: str = typer.Argument(...)) -> None:
    _echo(_edit_taxonomy(lambda tracker: tracker.taxonomy.remove_custom_source(value)))


@taxonomy_app.command("add-industry")
def taxonomy_add_industry(value: str = typer.Argument(...)) -> None:
    _echo(_edit_taxonomy(lambda tracker: tracker.taxonomy.add_custom_industry(value)))


@taxonomy_app.command("remove-industry")
def taxonomy_remove_industry(value: str = typer.Argument(...)) -> None:
    _echo(_edit_taxonomy(lambda tracker: tracker.taxonomy.remove_custom_industry(value)))


@view_app.command("show")
def view_show() -> None:
    preferences = ViewPreferences(get_settings().preferences_path)
    _echo({"view_mode": preferences.load_view_mode()})


@view_app.command("toggle")
def view_toggle() -> None:
    preferences = ViewPreferences(get_settings().preferences_path)
    _echo({"view_mode": preferences.toggle_view_mode()})


@app.command("serve")
def serve_cmd(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    settings = get_settings()
    uvicorn.run(create_app(settings), host=host or settings.app_host, port=port or settings.app_port)


if __name__ == "__main__":
    app()
