"""Pydantic response models for the HTTP API."""

from collections.abc import Mapping

from pydantic import BaseModel

from rail_journal.adapters.cloudinary_uploader import optimized_url
from rail_journal.domain.catalog import Line
from rail_journal.domain.entries import CaptionStatus, Draft, UploadStatus
from rail_journal.domain.visits import Progress, VisitRecord


class ProgressView(BaseModel):
    """Visited and total station counts."""

    visited: int
    total: int
    percent: int


class StationView(BaseModel):
    """A station with its visit state."""

    code: str
    name: str
    visited: bool
    display_image: str | None = None


class LineView(BaseModel):
    """A line with per-line progress."""

    id: str
    name: str
    color_class: str
    progress: ProgressView
    stations: list[StationView]


class DraftView(BaseModel):
    """The open visit draft."""

    session_id: int
    station_code: str
    station_name: str
    line_id: str
    line_name: str
    record: dict[str, object]
    display_image: str | None
    upload_status: UploadStatus
    upload_error: str | None
    caption_status: CaptionStatus
    safe_to_save: bool


def progress_view(progress: Progress) -> ProgressView:
    """Build a progress view."""
    return ProgressView(
        visited=progress.visited, total=progress.total, percent=progress.percent
    )


def line_view(
    line: Line, visits: Mapping[str, VisitRecord], progress: Progress
) -> LineView:
    """Build a line view with station visit flags."""
    stations = []
    for station in line.stations:
        visit = visits.get(station.code)
        stations.append(
            StationView(
                code=station.code,
                name=station.name,
                visited=visit is not None,
                display_image=optimized_url(visit.image_data) if visit else None,
            )
        )
    return LineView(
        id=line.id,
        name=line.name,
        color_class=line.color_class,
        progress=progress_view(progress),
        stations=stations,
    )


def draft_view(draft: Draft) -> DraftView:
    """Build a view of the open draft."""
    return DraftView(
        session_id=draft.session_id,
        station_code=draft.station.code,
        station_name=draft.station.name,
        line_id=draft.line.id,
        line_name=draft.line.name,
        record=record_payload(draft.record),
        display_image=optimized_url(draft.record.image_data),
        upload_status=draft.upload_status,
        upload_error=draft.upload_error,
        caption_status=draft.caption_status,
        safe_to_save=draft.safe_to_save,
    )


def record_payload(record: VisitRecord) -> dict[str, object]:
    """Return a record in its stored JSON shape."""
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)
