"""OpenAI Responses API client for nutrition completions."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from nutrition_ledger.services.estimation import CompletionClient


@dataclass
class OpenAICompletionClient(CompletionClient):
    """Completion client backed by OpenAI Responses API."""

    client: AsyncOpenAI
    model: str
    store: bool = False

    @classmethod
    def create(
        cls, api_key: str, model: str, store: bool = False
    ) -> "OpenAICompletionClient":
        """Create an OpenAI completion client."""
        return cls(client=AsyncOpenAI(api_key=api_key), model=model, store=store)

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        image_url: str | None = None,
    ) -> str:
        """Call OpenAI Responses API and return its output text."""
        content: list[dict[str, object]] = [
            {"type": "input_text", "text": user_prompt}
        ]
        if image_url:
            content.append({"type": "input_image", "image_url": image_url})
        response = await self.client.responses.create(
            model=self.model,
            instructions=system_prompt,
            input=[{"role": "user", "content": content}],
            store=self.store,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text
