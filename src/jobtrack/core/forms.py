from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from jobtrack.core.state import ApplicationStore
from jobtrack.errors import FormValidationError
from jobtrack.storage.resumes import ResumeUploader, validate_resume_file
from jobtrack.types import ApplicationFormData, ApplicationUpdate, JobApplication

logger = logging.getLogger(__name__)

REQUIRED_FORM_FIELDS: tuple[str, ...] = ("company_name", "company_location", "position")


@dataclass(slots=True)
class ResumeFile:
    content: bytes
    content_type: str
    filename: str = "resume.pdf"

    @property
    def size(self) -> int:
        return len(self.content)


def _field_value(values: dict[str, Any], name: str) -> Any:
    if name in values:
        return values[name]
    return values.get(ApplicationFormData.model_fields[name].alias or name)


def form_errors(exc: ValidationError) -> dict[str, str]:
    return {".".join(str(part) for part in error["loc"]) or "form": error["msg"] for error in exc.errors()}


def validate_application_form(values: dict[str, Any]) -> ApplicationFormData:
    errors: dict[str, str] = {}
    for name in REQUIRED_FORM_FIELDS:
        value = _field_value(values, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors[name] = "required"
    if errors:
        raise FormValidationError(errors)

    try:
        return ApplicationFormData.model_validate(values)
    except ValidationError as exc:
        raise FormValidationError(form_errors(exc)) from exc


def check_resume(resume: ResumeFile, max_bytes: int) -> ResumeFile:
    validate_resume_file(resume.content_type, resume.size, max_bytes)
    return resume


async def submit_application_form(
    store: ApplicationStore,
    uploader: ResumeUploader,
    data: ApplicationFormData,
    *,
    resume: ResumeFile | None = None,
    existing: JobApplication | None = None,
) -> str:
    """Create or edit an application and attach a pending resume upload.

    Store failures propagate so the caller can stay on the form.
    """
    if resume is not None:
        check_resume(resume, uploader.max_bytes)

    if existing is not None:
        resume_path = existing.resume_path
        if resume is not None:
            resume_path = await uploader.upload(existing.id, resume.content, resume.content_type)
        update = ApplicationUpdate.from_form(data.model_copy(update={"resume_path": resume_path or data.resume_path}))
        await store.update_application(existing.id, update)
        return existing.id

    application_id = await store.add_application(data)
    if resume is not None:
        resume_path = await uploader.upload(application_id, resume.content, resume.content_type)
        await store.update_application(application_id, ApplicationUpdate(resume_path=resume_path))
    logger.info("Submitted application %s", application_id)
    return application_id
