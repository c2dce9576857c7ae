"""Tests for inference adapters."""

import asyncio
import json

import httpx
import pytest

from mineral_scanner.adapters.ollama_inference_client import HttpxOllamaInferenceClient
from mineral_scanner.adapters.openai_inference_client import OpenAIInferenceClient
from mineral_scanner.services.inference import InferenceFailure


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str = "Cálcio: 30mg") -> None:
        self.responses = _FakeResponses(output_text)


def test_openai_client_returns_output_text() -> None:
    fake = _FakeOpenAI()
    client = OpenAIInferenceClient(client=fake)

    result = asyncio.run(
        client.describe(
            model="gpt-4.1-mini",
            image_data_url="data:image/jpeg;base64,ZmFrZQ==",
            instruction="Describe the label",
        )
    )

    assert result == "Cálcio: 30mg"
    payload = fake.responses.last_payload
    assert payload is not None
    content = payload["input"][0]["content"]
    assert content[0] == {"type": "input_text", "text": "Describe the label"}
    assert content[1]["image_url"] == "data:image/jpeg;base64,ZmFrZQ=="


def test_openai_client_rejects_empty_output() -> None:
    client = OpenAIInferenceClient(client=_FakeOpenAI(output_text=""))

    with pytest.raises(InferenceFailure):
        asyncio.run(
            client.describe(model="m", image_data_url="data:,", instruction="x")
        )


def test_ollama_client_posts_chat_with_image() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["payload"] = json.loads(request.content.decode())
        return httpx.Response(
            200,
            json={"message": {"role": "assistant", "content": "Magnésio: 9 mg"}},
        )

    transport = httpx.MockTransport(handler)
    client = HttpxOllamaInferenceClient(
        base_url="http://ollama.test",
        http_client=httpx.AsyncClient(transport=transport),
    )

    result = asyncio.run(
        client.describe(
            model="llama3.2-vision",
            image_data_url="data:image/jpeg;base64,ZmFrZQ==",
            instruction="Gere uma tabela",
        )
    )

    assert result == "Magnésio: 9 mg"
    assert seen["path"] == "/api/chat"
    payload = seen["payload"]
    assert isinstance(payload, dict)
    assert payload["stream"] is False
    assert payload["model"] == "llama3.2-vision"
    assert payload["messages"][0]["images"] == ["ZmFrZQ=="]
    assert payload["messages"][0]["content"] == "Gere uma tabela"


def test_ollama_client_maps_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "model not loaded"})

    transport = httpx.MockTransport(handler)
    client = HttpxOllamaInferenceClient(
        base_url="http://ollama.test",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(InferenceFailure):
        asyncio.run(
            client.describe(model="m", image_data_url="data:,", instruction="x")
        )


def test_ollama_client_rejects_malformed_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"done": True})

    transport = httpx.MockTransport(handler)
    client = HttpxOllamaInferenceClient(
        base_url="http://ollama.test",
        http_client=httpx.AsyncClient(transport=transport),
    )

    with pytest.raises(InferenceFailure):
        asyncio.run(
            client.describe(model="m", image_data_url="data:,", instruction="x")
        )
