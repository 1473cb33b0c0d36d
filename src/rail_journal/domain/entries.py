"""Domain models for in-progress visit entries."""

from dataclasses import dataclass
from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from rail_journal.domain.catalog import Line, Station
from rail_journal.domain.visits import VisitRecord

UploadStatus = Literal["IDLE", "UPLOADING", "UPLOADED", "FAILED"]
CaptionStatus = Literal["IDLE", "GENERATING", "READY", "FAILED"]


@dataclass
class Draft:
    """Editable working copy of a visit record for one edit session.

    ``session_id`` identifies the edit session. ``image_generation`` and
    ``caption_edits`` count image selections and user caption edits, so a
    background result can tell whether the field it would write is still
    the one it was requested for.
    """

    session_id: int
    station: Station
    line: Line
    record: VisitRecord
    upload_status: UploadStatus = "IDLE"
    upload_error: str | None = None
    caption_status: CaptionStatus = "IDLE"
    image_generation: int = 0
    caption_edits: int = 0

    @property
    def safe_to_save(self) -> bool:
        """Return True when the image reference will not need a re-upload."""
        return self.upload_status in {"IDLE", "UPLOADED"}


@dataclass(frozen=True)
class RequestTicket:
    """Identity of one background request issued for a draft."""

    session_id: int
    image_generation: int
    caption_edits: int


class DraftEdit(BaseModel):
    """User edits to a draft; only fields that are set are applied.

    Accepts the same camelCase names a visit record is returned with.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    visited_date: date | None = Field(default=None, alias="visitedDate")
    caption: str | None = None
    highlights: str | None = None
    good_food: str | None = Field(default=None, alias="goodFood")
