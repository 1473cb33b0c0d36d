"""OpenAI Responses API client for photo captions."""

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from rail_journal.errors import GenerationError
from rail_journal.services.captions import CaptionClient


@dataclass
class OpenAICaptionClient(CaptionClient):
    """Caption client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAICaptionClient":
        """Create an OpenAI caption client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        prompt: str,
    ) -> str:
        """Call OpenAI Responses API with an inline image and a text prompt."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_image", "image_url": image_data_url},
                        {"type": "input_text", "text": prompt},
                    ],
                }
            ],
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise GenerationError(f"OpenAI request failed: {exc}") from exc
        output_text = response.output_text
        if not output_text:
            raise GenerationError("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
