from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel, to_snake

ApplicationStatus = Literal[
    "applied",
    "test_case",
    "hr_interview",
    "technical_interview",
    "management_interview",
    "offer",
    "accepted",
    "rejected",
]
WorkType = Literal["remote", "hybrid", "onsite"]
SortField = Literal["application_date", "company_name", "status", "created_at", "updated_at"]
SortOrder = Literal["asc", "desc"]
ViewMode = Literal["list", "kanban"]

REQUIRED_COLUMNS = frozenset(
    {
        "company_name",
        "company_location",
        "company_industry",
        "position",
        "application_date",
        "source",
        "work_type",
        "status",
    }
)


def new_contact_id() -> str:
    return str(uuid4())


def normalize_skills(values: list[str]) -> list[str]:
    skills: list[str] = []
    for value in values:
        skill = value.strip()
        if skill and skill not in skills:
            skills.append(skill)
    return skills


def coerce_calendar_date(value: Any) -> Any:
    """Drop any time-of-day component so dates compare as calendar days."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value.strip()) > 10:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContactPerson(CamelModel):
    id: str = Field(default_factory=new_contact_id)
    name: str = ""
    role: str | None = None
    email: str | None = None
    phone: str | None = None
    linkedin: str | None = None
    notes: str | None = None


def _check_contact_ids(contacts: list[ContactPerson]) -> list[ContactPerson]:
    seen: set[str] = set()
    for contact in contacts:
        if contact.id in seen:
            raise ValueError(f"duplicate contact id '{contact.id}'")
        seen.add(contact.id)
    return contacts


class ApplicationFormData(CamelModel):
    company_name: str
    company_location: str
    company_industry: str
    company_salary_range: str | None = None
    position: str
    skills: list[str] = Field(default_factory=list)
    application_date: date
    cover_letter: str | None = None
    salary_expectation: str | None = None
    resume_path: str | None = None
    job_posting_url: str | None = None
    job_posting_content: str | None = None
    source: str
    work_type: WorkType
    notes: str | None = None
    contacts: list[ContactPerson] = Field(default_factory=list)
    status: ApplicationStatus = "applied"

    @field_validator("skills", mode="before")
    @classmethod
    def default_skills(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("skills")
    @classmethod
    def dedupe_skills(cls, value: list[str]) -> list[str]:
        return normalize_skills(value)

    @field_validator("contacts")
    @classmethod
    def unique_contact_ids(cls, value: list[ContactPerson]) -> list[ContactPerson]:
        return _check_contact_ids(value)

    @field_validator("application_date", mode="before")
    @classmethod
    def calendar_date(cls, value: Any) -> Any:
        return coerce_calendar_date(value)


class JobApplication(ApplicationFormData):
    model_config = ConfigDict(frozen=True)

    id: str
    is_pinned: bool = False
    created_at: datetime
    updated_at: datetime


class ApplicationUpdate(CamelModel):
    """Partial update. Only fields that were explicitly passed are sent to the store."""

    company_name: str | None = None
    company_location: str | None = None
    company_industry: str | None = None
    company_salary_range: str | None = None
    position: str | None = None
    skills: list[str] | None = None
    application_date: date | None = None
    cover_letter: str | None = None
    salary_expectation: str | None = None
    resume_path: str | None = None
    job_posting_url: str | None = None
    job_posting_content: str | None = None
    source: str | None = None
    work_type: WorkType | None = None
    notes: str | None = None
    contacts: list[ContactPerson] | None = None
    status: ApplicationStatus | None = None

    @field_validator("skills")
    @classmethod
    def dedupe_skills(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else normalize_skills(value)

    @field_validator("contacts")
    @classmethod
    def unique_contact_ids(cls, value: list[ContactPerson] | None) -> list[ContactPerson] | None:
        return None if value is None else _check_contact_ids(value)

    @field_validator("application_date", mode="before")
    @classmethod
    def calendar_date(cls, value: Any) -> Any:
        return coerce_calendar_date(value)

    @model_validator(mode="after")
    def required_columns_not_cleared(self) -> ApplicationUpdate:
        cleared = sorted(
            name for name in self.model_fields_set if name in REQUIRED_COLUMNS and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"required fields cannot be cleared: {', '.join(cleared)}")
        return self

    @classmethod
    def from_form(cls, form: ApplicationFormData) -> ApplicationUpdate:
        return cls.model_validate(form.model_dump())

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}

    def is_empty(self) -> bool:
        return not self.model_fields_set


class DateRange(CamelModel):
    from_: date | None = Field(default=None, alias="from")
    to: date | None = None

    @field_validator("from_", "to", mode="before")
    @classmethod
    def calendar_date(cls, value: Any) -> Any:
        return coerce_calendar_date(value)


class FilterOptions(CamelModel):
    status: list[ApplicationStatus] | None = None
    source: list[str] | None = None
    work_type: list[WorkType] | None = None
    industry: list[str] | None = None
    date_range: DateRange | None = None
    is_pinned: bool | None = None
    hide_rejected: bool = False


class SortOptions(CamelModel):
    field: SortField = "application_date"
    order: SortOrder = "desc"

    @field_validator("field", mode="before")
    @classmethod
    def accept_camel_case(cls, value: Any) -> Any:
        return to_snake(value) if isinstance(value, str) else value


class AppSettings(CamelModel):
    theme: Literal["light", "dark", "system"] = "system"
    language: Literal["en", "fr", "tr"] = "en"
    custom_sources: list[str] = Field(default_factory=list)
    custom_industries: list[str] = Field(default_factory=list)
    hide_rejected: bool = False
