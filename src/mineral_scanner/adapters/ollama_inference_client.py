"""Ollama chat API client for label inference."""

from dataclasses import dataclass

import httpx

from mineral_scanner.services.inference import (
    InferenceClient,
    InferenceFailure,
    split_data_url,
)


@dataclass
class HttpxOllamaInferenceClient(InferenceClient):
    """Inference client for a local Ollama server using httpx."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, base_url: str, timeout_seconds: float = 120.0
    ) -> "HttpxOllamaInferenceClient":
        """Create an Ollama client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(timeout=timeout_seconds),
        )

    async def describe(
        self,
        *,
        model: str,
        image_data_url: str,
        instruction: str,
    ) -> str:
        """Send a single non-streamed chat message with the image attached."""
        payload = {
            "model": model,
            "stream": False,
            "messages": [
                {
                    "role": "user",
                    "content": instruction,
                    "images": [split_data_url(image_data_url)],
                }
            ],
        }
        try:
            response = await self.http_client.post(
                f"{self.base_url}/api/chat", json=payload
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise InferenceFailure(f"Ollama request failed: {exc}") from exc

        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise InferenceFailure("Ollama response has no message content")
        return content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
