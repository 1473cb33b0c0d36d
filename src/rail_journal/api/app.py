"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from rail_journal.api.views import (
    DraftView,
    LineView,
    ProgressView,
    draft_view,
    line_view,
    progress_view,
    record_payload,
)
from rail_journal.app_logging import configure_logging
from rail_journal.containers import AppContainer
from rail_journal.domain.entries import DraftEdit
from rail_journal.errors import (
    NoActiveDraftError,
    PersistenceError,
    UnknownStationError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(UnknownStationError)
    async def unknown_station(
        _request: Request, exc: UnknownStationError
    ) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(NoActiveDraftError)
    async def no_active_draft(
        _request: Request, exc: NoActiveDraftError
    ) -> JSONResponse:
        return _error_response(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(PersistenceError)
    async def persistence_failed(
        _request: Request, exc: PersistenceError
    ) -> JSONResponse:
        logger.error("Failed to persist visits: %s", exc)
        return _error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Could not save your journey. Please try again.",
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/progress")
    async def progress(request: Request) -> ProgressView:
        """Return visited stations across the whole catalog."""
        state_container: AppContainer = request.app.state.container
        return progress_view(
            state_container.visit_store.progress(state_container.catalog)
        )

    @app.get("/lines")
    async def lines(request: Request) -> list[LineView]:
        """Return every line with per-line progress."""
        state_container: AppContainer = request.app.state.container
        store = state_container.visit_store
        return [
            line_view(line, store.visits, store.line_progress(line))
            for line in state_container.catalog.lines
        ]

    @app.get("/visits/{station_code}")
    async def visit_detail(station_code: str, request: Request) -> dict[str, object]:
        """Return the committed visit for a station."""
        state_container: AppContainer = request.app.state.container
        record = state_container.visit_store.get(station_code)
        if record is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return record_payload(record)

    @app.post("/entries/{station_code}")
    async def open_entry(station_code: str, request: Request) -> DraftView:
        """Open a visit draft for a station."""
        state_container: AppContainer = request.app.state.container
        return draft_view(state_container.entry_pipeline.open(station_code))

    @app.get("/entries/current")
    async def current_entry(request: Request) -> DraftView:
        """Return the open visit draft."""
        state_container: AppContainer = request.app.state.container
        draft = state_container.entry_pipeline.current
        if draft is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        return draft_view(draft)

    @app.patch("/entries/current")
    async def edit_entry(changes: DraftEdit, request: Request) -> DraftView:
        """Apply edits to the open visit draft."""
        state_container: AppContainer = request.app.state.container
        return draft_view(state_container.entry_pipeline.edit(changes))

    @app.post("/entries/current/image")
    async def attach_image(request: Request) -> DraftView:
        """Attach a photo sent as the raw request body."""
        state_container: AppContainer = request.app.state.container
        image_bytes = await request.body()
        if not image_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Empty image body"
            )
        pipeline = state_container.entry_pipeline
        pipeline.attach_image(image_bytes, _image_mime_type(request))
        draft = pipeline.current
        if draft is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT)
        return draft_view(draft)

    @app.post("/entries/current/save")
    async def save_entry(request: Request) -> dict[str, object]:
        """Commit the open visit draft."""
        state_container: AppContainer = request.app.state.container
        record = state_container.entry_pipeline.save()
        return record_payload(record)

    @app.delete("/entries/current")
    async def discard_entry(request: Request) -> dict[str, str]:
        """Discard the open visit draft."""
        state_container: AppContainer = request.app.state.container
        state_container.entry_pipeline.discard()
        return {"status": "ok"}

    @app.delete("/entries/current/visit")
    async def delete_visit(request: Request) -> dict[str, str]:
        """Delete the stored visit for the open draft's station."""
        state_container: AppContainer = request.app.state.container
        state_container.entry_pipeline.delete_entry()
        return {"status": "ok"}

    return app


def _error_response(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


def _image_mime_type(request: Request) -> str | None:
    """Return the request content type when it names an image."""
    content_type = request.headers.get("content-type", "")
    mime_type = content_type.split(";", 1)[0].strip().lower()
    return mime_type if mime_type.startswith("image/") else None
