"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import date

import pytest

from rail_journal.config import Settings
from rail_journal.containers import AppContainer
from rail_journal.domain.catalog import Line, Station
from rail_journal.errors import GenerationError, PersistenceError, UploadError
from rail_journal.services.captions import CaptionClient, CaptionService
from rail_journal.services.catalog import Catalog
from rail_journal.services.entries import EntryPipeline, ImageUploader
from rail_journal.services.visits import VisitStorage, VisitStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-png-body"
JPEG_BYTES = b"\xff\xd8\xff" + b"fake-jpeg-body"
FIXED_TODAY = date(2024, 5, 17)


@dataclass
class InMemoryVisitStorage(VisitStorage):
    """In-memory visit storage for tests."""

    payload: str | None = None
    saves: list[str] = field(default_factory=list)
    fail_saves: bool = False

    def load(self) -> str | None:
        return self.payload

    def save(self, payload: str) -> None:
        if self.fail_saves:
            raise PersistenceError("disk full")
        self.payload = payload
        self.saves.append(payload)


@dataclass
class FakeImageUploader(ImageUploader):
    """Fake uploader that can be held open until released."""

    url: str = "https://res.cloudinary.com/demo/image/upload/v1/visit.jpg"
    urls: list[str] = field(default_factory=list)
    error: Exception | None = None
    hold: bool = False
    calls: list[tuple[bytes, str]] = field(default_factory=list)
    _gates: list[asyncio.Event] = field(default_factory=list)

    async def upload(self, image_bytes: bytes, mime_type: str) -> str:
        index = len(self.calls)
        self.calls.append((image_bytes, mime_type))
        if self.hold:
            gate = asyncio.Event()
            self._gates.append(gate)
            await gate.wait()
        if self.error is not None:
            raise self.error
        return self.urls[index] if index < len(self.urls) else self.url

    def release(self, index: int | None = None) -> None:
        gates = self._gates if index is None else [self._gates[index]]
        for gate in gates:
            gate.set()


@dataclass
class FakeCaptionClient(CaptionClient):
    """Fake caption client that can be held open until released."""

    text: str = "  Gratitude for quiet mornings at the platform.  "
    error: Exception | None = None
    hold: bool = False
    prompts: list[str] = field(default_factory=list)
    _gates: list[asyncio.Event] = field(default_factory=list)

    async def generate(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        prompt: str,
    ) -> str:
        self.prompts.append(prompt)
        if self.hold:
            gate = asyncio.Event()
            self._gates.append(gate)
            await gate.wait()
        if self.error is not None:
            raise self.error
        return self.text

    def release(self) -> None:
        for gate in self._gates:
            gate.set()


async def settle() -> None:
    """Let freshly started background tasks reach their first await."""
    for _ in range(5):
        await asyncio.sleep(0)


def build_catalog() -> Catalog:
    """Small two-line catalog with an interchange station."""
    return Catalog(
        lines=[
            Line(
                id="EWL",
                name="East-West Line",
                color_class="bg-green-600",
                stations=(
                    Station(code="EW17", name="Tiong Bahru"),
                    Station(code="EW18", name="Redhill"),
                    Station(code="EW24", name="Jurong East"),
                ),
            ),
            Line(
                id="NSL",
                name="North-South Line",
                color_class="bg-red-600",
                stations=(
                    Station(code="NS1", name="Jurong East"),
                    Station(code="NS2", name="Bukit Batok"),
                ),
            ),
        ]
    )


def build_pipeline(
    storage: InMemoryVisitStorage | None = None,
    uploader: FakeImageUploader | None = None,
    caption_client: FakeCaptionClient | None = None,
) -> EntryPipeline:
    """Build an entry pipeline over in-memory collaborators."""
    caption_service = None
    if caption_client is not None:
        caption_service = CaptionService(
            client=caption_client,
            model="gpt-5.2",
            reasoning_effort=None,
            store=False,
        )
    return EntryPipeline(
        store=VisitStore.load(storage or InMemoryVisitStorage()),
        catalog=build_catalog(),
        uploader=uploader or FakeImageUploader(),
        caption_service=caption_service,
        today=lambda: FIXED_TODAY,
    )


def failing_uploader() -> FakeImageUploader:
    return FakeImageUploader(error=UploadError("503 Service Unavailable"))


def failing_caption_client() -> FakeCaptionClient:
    return FakeCaptionClient(error=GenerationError("invalid api key"))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        cloudinary_cloud_name="demo",
        cloudinary_upload_preset="rail_journal",
        openai_api_key="openai-key",
        storage_path=str(tmp_path / "visits.json"),
    )


@pytest.fixture
def storage() -> InMemoryVisitStorage:
    return InMemoryVisitStorage()


@pytest.fixture
def uploader() -> FakeImageUploader:
    return FakeImageUploader(hold=True)


@pytest.fixture
def container(
    settings: Settings,
    storage: InMemoryVisitStorage,
    uploader: FakeImageUploader,
) -> AppContainer:
    pipeline = build_pipeline(storage=storage, uploader=uploader)

    async def close_resources() -> None:
        await pipeline.aclose()

    return AppContainer(
        settings=settings,
        catalog=pipeline.catalog,
        visit_store=pipeline.store,
        entry_pipeline=pipeline,
        close_resources=close_resources,
    )
