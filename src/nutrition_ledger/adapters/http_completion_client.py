"""Plain HTTP client for chat-completion style LLM endpoints."""

from dataclasses import dataclass

import httpx

from nutrition_ledger.services.estimation import CompletionClient


@dataclass
class HttpxCompletionClient(CompletionClient):
    """POSTs a message list and reads the ``completion`` field of the reply."""

    url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 30

    @classmethod
    def create(cls, url: str, timeout_seconds: float = 30) -> "HttpxCompletionClient":
        """Create a completion client with a managed httpx session."""
        return cls(
            url=url,
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        image_url: str | None = None,
    ) -> str:
        """Send the prompts and return the completion string."""
        response = await self.http_client.post(
            self.url,
            json={
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ]
            },
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        completion = payload.get("completion") if isinstance(payload, dict) else None
        return completion if isinstance(completion, str) else ""

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
