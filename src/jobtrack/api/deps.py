from __future__ import annotations

from fastapi import HTTPException, Request

from jobtrack.core.runtime import TrackerSession
from jobtrack.types import JobApplication


def get_tracker(request: Request) -> TrackerSession:
    tracker: TrackerSession | None = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(status_code=503, detail="Tracker session is not open")
    return tracker


def require_application(tracker: TrackerSession, application_id: str) -> JobApplication:
    application = tracker.store.get_application_by_id(application_id)
    if application is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return application
