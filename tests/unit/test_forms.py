import pytest

from jobtrack.core.forms import ResumeFile, check_resume, validate_application_form
from jobtrack.errors import FormValidationError, ResumeValidationError


def _values(**overrides: object) -> dict:
    values = {
        "companyName": "Acme",
        "companyLocation": "Berlin",
        "companyIndustry": "Technology",
        "position": "Backend Engineer",
        "applicationDate": "2024-03-01",
        "source": "LinkedIn",
        "workType": "remote",
    }
    values.update(overrides)
    return values


def test_valid_form_is_parsed() -> None:
    form = validate_application_form(_values(skills=["Python", "Python"]))
    assert form.company_name == "Acme"
    assert form.skills == ["Python"]


def test_blank_required_fields_are_reported_together() -> None:
    with pytest.raises(FormValidationError) as excinfo:
        validate_application_form(_values(companyName="   ", position=""))
    assert excinfo.value.errors == {"company_name": "required", "position": "required"}


def test_snake_case_keys_are_accepted() -> None:
    values = _values()
    values.pop("companyLocation")
    with pytest.raises(FormValidationError) as excinfo:
        validate_application_form(values)
    assert "company_location" in excinfo.value.errors

    values["company_location"] = "Paris"
    assert validate_application_form(values).company_location == "Paris"


def test_model_errors_become_form_errors() -> None:
    with pytest.raises(FormValidationError) as excinfo:
        validate_application_form(_values(workType="space"))
    assert "workType" in excinfo.value.errors


def test_resume_checks_type_and_size() -> None:
    assert check_resume(ResumeFile(b"%PDF-1.7", "application/pdf"), 1024).size == 8

    with pytest.raises(ResumeValidationError) as excinfo:
        check_resume(ResumeFile(b"hello", "text/plain"), 1024)
    assert excinfo.value.errors == {"resume": "Only PDF files are accepted"}

    with pytest.raises(ResumeValidationError):
        check_resume(ResumeFile(b"x" * 2048, "application/pdf"), 1024)
