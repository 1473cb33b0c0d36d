"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from rail_journal.adapters.cloudinary_uploader import CloudinaryImageUploader
from rail_journal.adapters.json_file_visit_storage import JsonFileVisitStorage
from rail_journal.adapters.openai_caption_client import OpenAICaptionClient
from rail_journal.adapters.supabase_visit_storage import SupabaseVisitStorage
from rail_journal.config import Settings
from rail_journal.services.captions import CaptionService
from rail_journal.services.catalog import Catalog, default_catalog, load_catalog
from rail_journal.services.entries import EntryPipeline
from rail_journal.services.visits import VisitStorage, VisitStore


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog: Catalog
    visit_store: VisitStore
    entry_pipeline: EntryPipeline
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    catalog = (
        load_catalog(resolved_settings.catalog_path)
        if resolved_settings.catalog_path
        else default_catalog()
    )
    visit_store = VisitStore.load(build_visit_storage(resolved_settings))
    uploader = CloudinaryImageUploader.create(
        cloud_name=resolved_settings.cloudinary_cloud_name,
        upload_preset=resolved_settings.cloudinary_upload_preset,
    )
    caption_client = None
    caption_service = None
    if resolved_settings.captions_enabled:
        caption_client = OpenAICaptionClient.create(
            resolved_settings.openai_api_key  # type: ignore[arg-type]
        )
        caption_service = CaptionService(
            client=caption_client,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
        )
    entry_pipeline = EntryPipeline(
        store=visit_store,
        catalog=catalog,
        uploader=uploader,
        caption_service=caption_service,
    )

    async def close_resources() -> None:
        await entry_pipeline.aclose()
        await uploader.close()
        if caption_client is not None:
            await caption_client.close()

    return AppContainer(
        settings=resolved_settings,
        catalog=catalog,
        visit_store=visit_store,
        entry_pipeline=entry_pipeline,
        close_resources=close_resources,
    )


def build_visit_storage(settings: Settings) -> VisitStorage:
    """Create the configured persistence backend for visits."""
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY are required "
                "for the supabase storage backend"
            )
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseVisitStorage(
            client=client,
            storage_key=settings.storage_key,
            table=settings.supabase_table,
        )
    return JsonFileVisitStorage.create(settings.storage_path)
