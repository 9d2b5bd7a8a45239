from __future__ import annotations


class JobTrackError(Exception):
    """Base class for errors raised by jobtrack."""


class StoreError(JobTrackError):
    """A persistence operation failed (transport, constraint or missing row)."""


class AuthRequiredError(StoreError):
    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class FormValidationError(JobTrackError):
    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        detail = ", ".join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(detail or "invalid input")


class ResumeValidationError(FormValidationError):
    def __init__(self, message: str) -> None:
        super().__init__({"resume": message})
