from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jobtrack.api.routes import router as api_router
from jobtrack.config import Settings, get_settings
from jobtrack.core.runtime import open_session
from jobtrack.logging_config import configure_logging


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        tracker = await open_session(settings)
        await tracker.store.fetch_applications()
        app.state.tracker = tracker
        try:
            yield
        finally:
            app.state.tracker = None
            await tracker.close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> JSONResponse:
        tracker = getattr(app.state, "tracker", None)
        hydrated = bool(tracker and tracker.store.state.has_hydrated)
        return JSONResponse({"status": "ok", "hydrated": hydrated})

    app.include_router(api_router)
    return app
