"""Tests for HTTP-based completion adapters."""

import asyncio
import json

import httpx
import pytest

from nutrition_ledger.adapters.http_completion_client import HttpxCompletionClient
from nutrition_ledger.adapters.openai_completion_client import OpenAICompletionClient


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str = '{"type": "food", "calories": 90}') -> None:
        self.responses = _FakeResponses(output_text)


def test_openai_client_sends_instructions_and_image() -> None:
    fake = _FakeOpenAI()
    client = OpenAICompletionClient(client=fake, model="gpt-4.1-mini")

    result = asyncio.run(
        client.complete(
            system_prompt="Be precise",
            user_prompt="Analyze this plate",
            image_url="https://cdn.example.com/plate.jpg",
        )
    )

    payload = fake.responses.last_payload
    assert result == '{"type": "food", "calories": 90}'
    assert payload is not None
    assert payload["instructions"] == "Be precise"
    assert payload["store"] is False
    content = payload["input"][0]["content"]
    assert content[0] == {"type": "input_text", "text": "Analyze this plate"}
    assert content[1]["image_url"] == "https://cdn.example.com/plate.jpg"


def test_openai_client_rejects_empty_output() -> None:
    client = OpenAICompletionClient(client=_FakeOpenAI(output_text=""), model="m")

    with pytest.raises(RuntimeError):
        asyncio.run(client.complete(system_prompt="s", user_prompt="banana"))


def test_http_completion_client_posts_messages() -> None:
    seen: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content.decode()))
        return httpx.Response(200, json={"completion": '{"calories": 80}'})

    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxCompletionClient(
        url="https://llm.example.com/ai/llm", http_client=async_client
    )

    result = asyncio.run(client.complete(system_prompt="sys", user_prompt="apple"))

    assert result == '{"calories": 80}'
    assert seen[0]["messages"] == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "apple"},
    ]


def test_http_completion_client_missing_completion_is_empty() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"result": "ok"})

    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxCompletionClient(
        url="https://llm.example.com", http_client=async_client
    )

    assert asyncio.run(client.complete(system_prompt="s", user_prompt="u")) == ""


def test_http_completion_client_raises_on_error_status() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "busy"})

    async_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = HttpxCompletionClient(
        url="https://llm.example.com", http_client=async_client
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.complete(system_prompt="s", user_prompt="u"))
