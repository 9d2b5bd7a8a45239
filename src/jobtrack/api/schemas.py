from __future__ import annotations

from typing import Literal

from pydantic import Field

from jobtrack.types import ApplicationStatus, CamelModel, JobApplication


class StatusChangeRequest(CamelModel):
    status: ApplicationStatus


class NotesChangeRequest(CamelModel):
    notes: str = ""


class MutationResponse(CamelModel):
    phase: str
    application: JobApplication | None = None
    error: str | None = None


class DeleteResponse(CamelModel):
    deleted: str


class TaxonomyEntryRequest(CamelModel):
    value: str = Field(min_length=1)


class TaxonomyResponse(CamelModel):
    sources: list[str]
    industries: list[str]
    custom_sources: list[str]
    custom_industries: list[str]


class SettingsUpdateRequest(CamelModel):
    theme: Literal["light", "dark", "system"] | None = None
    language: Literal["en", "fr", "tr"] | None = None
    hide_rejected: bool | None = None


class SalaryResponse(CamelModel):
    currency: str
    amount: str
    formatted: str
