"""Entry pipeline for capturing a visit from photo to committed record."""

import asyncio
import itertools
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from rail_journal.domain.entries import Draft, DraftEdit, RequestTicket
from rail_journal.domain.visits import VisitRecord
from rail_journal.errors import GenerationError, NoActiveDraftError, UploadError
from rail_journal.services.captions import CaptionService
from rail_journal.services.catalog import Catalog
from rail_journal.services.images import (
    detect_mime_type,
    is_local_reference,
    to_data_url,
)
from rail_journal.services.visits import VisitStore

logger = logging.getLogger(__name__)


class ImageUploader(Protocol):
    """Interface for durable remote image storage."""

    async def upload(self, image_bytes: bytes, mime_type: str) -> str:
        """Upload image bytes and return a stable URL."""


@dataclass(frozen=True)
class PendingImage:
    """Background work started for one image selection."""

    upload: asyncio.Task[None]
    caption: asyncio.Task[None] | None = None


@dataclass
class EntryPipeline:
    """State machine driving one station's draft to a committed record.

    Upload and caption results are applied only if the draft they were
    requested for is still open and the field they write has not been
    changed since. Anything else is dropped on arrival.
    """

    store: VisitStore
    catalog: Catalog
    uploader: ImageUploader
    caption_service: CaptionService | None = None
    today: Callable[[], date] = date.today
    _draft: Draft | None = field(default=None, init=False)
    _session_ids: itertools.count = field(
        default_factory=lambda: itertools.count(1), init=False
    )
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    @property
    def current(self) -> Draft | None:
        """Return the open draft, if any."""
        return self._draft

    def open(self, station_code: str) -> Draft:
        """Open a draft for a station, discarding any previous draft."""
        station, line = self.catalog.find(station_code)
        existing = self.store.get(station.code)
        record = existing or VisitRecord(
            station_code=station.code, visited_date=self.today()
        )
        self._draft = Draft(
            session_id=next(self._session_ids),
            station=station,
            line=line,
            record=record,
        )
        logger.info(
            "Opened visit draft",
            extra={
                "station_code": station.code,
                "session_id": self._draft.session_id,
                "existing": existing is not None,
            },
        )
        return self._draft

    def edit(self, changes: DraftEdit) -> Draft:
        """Apply user edits to the open draft."""
        draft = self._require_draft()
        updates = changes.model_dump(exclude_unset=True)
        if updates.get("visited_date", date.min) is None:
            updates.pop("visited_date")
        if "caption" in updates:
            draft.caption_edits += 1
        if updates:
            draft.record = draft.record.model_copy(update=updates)
        return draft

    def attach_image(
        self, image_bytes: bytes, mime_type: str | None = None
    ) -> PendingImage:
        """Show a local preview immediately and start upload and captioning.

        Must be called from a running event loop.
        """
        draft = self._require_draft()
        loop = asyncio.get_running_loop()
        resolved_mime = mime_type or detect_mime_type(image_bytes)

        draft.image_generation += 1
        draft.record = draft.record.model_copy(
            update={"image_data": to_data_url(image_bytes, resolved_mime)}
        )
        draft.upload_status = "UPLOADING"
        draft.upload_error = None
        ticket = _ticket_for(draft)

        upload = self._spawn(
            loop, self._run_upload(ticket, image_bytes, resolved_mime)
        )
        caption = None
        if self.caption_service is not None:
            draft.caption_status = "GENERATING"
            caption = self._spawn(
                loop,
                self._run_caption(
                    self.caption_service,
                    ticket,
                    image_bytes,
                    resolved_mime,
                    draft.station.name,
                ),
            )
        return PendingImage(upload=upload, caption=caption)

    def save(self) -> VisitRecord:
        """Commit the draft as it stands and close it.

        Saving never waits for a pending upload; the committed record keeps
        whatever image reference the draft holds at this moment.
        """
        draft = self._require_draft()
        if is_local_reference(draft.record.image_data):
            logger.info(
                "Saving visit with a local image preview",
                extra={
                    "station_code": draft.station.code,
                    "upload_status": draft.upload_status,
                },
            )
        self.store.commit(draft.record)
        self._draft = None
        logger.info("Saved visit", extra={"station_code": draft.station.code})
        return draft.record

    def discard(self) -> None:
        """Drop the open draft without saving."""
        self._draft = None

    def delete_entry(self) -> None:
        """Remove the stored visit for the draft's station and close it."""
        draft = self._require_draft()
        self.store.remove(draft.station.code)
        self._draft = None
        logger.info("Deleted visit", extra={"station_code": draft.station.code})

    async def aclose(self) -> None:
        """Cancel outstanding background work."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_upload(
        self, ticket: RequestTicket, image_bytes: bytes, mime_type: str
    ) -> None:
        try:
            url = await self.uploader.upload(image_bytes, mime_type)
        except Exception as exc:
            draft = self._live_draft(ticket)
            if draft is None:
                return
            if isinstance(exc, UploadError):
                logger.warning("Image upload failed: %s", exc)
            else:
                logger.exception("Unexpected error during image upload")
            draft.upload_status = "FAILED"
            draft.upload_error = "Failed to upload image to cloud. Please try again."
            return

        draft = self._live_draft(ticket)
        if draft is None:
            return
        draft.record = draft.record.model_copy(update={"image_data": url})
        draft.upload_status = "UPLOADED"

    async def _run_caption(  # noqa: PLR0913
        self,
        caption_service: CaptionService,
        ticket: RequestTicket,
        image_bytes: bytes,
        mime_type: str,
        station_name: str,
    ) -> None:
        try:
            caption = await caption_service.generate(
                image_bytes, mime_type, station_name
            )
        except GenerationError as exc:
            draft = self._live_draft(ticket)
            if draft is None:
                return
            logger.warning("Caption generation failed: %s", exc)
            draft.caption_status = "FAILED"
            return

        draft = self._live_draft(ticket)
        if draft is None:
            return
        if draft.caption_edits != ticket.caption_edits:
            logger.debug(
                "Keeping user caption over generated caption",
                extra={"session_id": ticket.session_id},
            )
            draft.caption_status = "IDLE"
            return
        draft.record = draft.record.model_copy(update={"caption": caption})
        draft.caption_status = "READY"

    def _live_draft(self, ticket: RequestTicket) -> Draft | None:
        draft = self._draft
        if (
            draft is None
            or draft.session_id != ticket.session_id
            or draft.image_generation != ticket.image_generation
        ):
            logger.debug(
                "Dropping stale result", extra={"session_id": ticket.session_id}
            )
            return None
        return draft

    def _require_draft(self) -> Draft:
        if self._draft is None:
            raise NoActiveDraftError("No visit entry is open")
        return self._draft

    def _spawn(
        self,
        loop: asyncio.AbstractEventLoop,
        coro: Coroutine[object, object, None],
    ) -> asyncio.Task[None]:
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task


def _ticket_for(draft: Draft) -> RequestTicket:
    return RequestTicket(
        session_id=draft.session_id,
        image_generation=draft.image_generation,
        caption_edits=draft.caption_edits,
    )
