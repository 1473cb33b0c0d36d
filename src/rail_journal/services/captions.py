"""Caption generation for visit photos using LLMs."""

from dataclasses import dataclass
from typing import Protocol

from rail_journal.errors import GenerationError
from rail_journal.services.images import to_data_url

CAPTION_PROMPT = (
    "Write a poetic, 1-sentence gratitude caption about this scene "
    "at {station_name} MRT station."
)


class CaptionClient(Protocol):
    """Interface for LLM caption generation."""

    async def generate(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        prompt: str,
    ) -> str:
        """Return generated caption text for an image."""


@dataclass
class CaptionService:
    """Service that prepares caption prompts and cleans results."""

    client: CaptionClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def generate(
        self, image_bytes: bytes, mime_type: str | None, station_name: str
    ) -> str:
        """Generate a caption for a photo taken at a station."""
        prompt = CAPTION_PROMPT.format(station_name=station_name)
        try:
            text = await self.client.generate(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                image_data_url=to_data_url(image_bytes, mime_type),
                prompt=prompt,
            )
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(f"Caption generation failed: {exc}") from exc
        caption = text.strip()
        if not caption:
            raise GenerationError("Caption generation returned no text")
        return caption
