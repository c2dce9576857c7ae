"""OpenAI Responses API client for label inference."""

from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from mineral_scanner.services.inference import InferenceClient, InferenceFailure


@dataclass
class OpenAIInferenceClient(InferenceClient):
    """Inference client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIInferenceClient":
        """Create an OpenAI inference client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def describe(
        self,
        *,
        model: str,
        image_data_url: str,
        instruction: str,
    ) -> str:
        """Call OpenAI Responses API with the instruction and image."""
        request_payload: dict[str, object] = {
            "model": model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": instruction},
                        {"type": "input_image", "image_url": image_data_url},
                    ],
                }
            ],
            "store": False,
        }
        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise InferenceFailure(f"OpenAI request failed: {exc}") from exc
        output_text = response.output_text
        if not output_text:
            raise InferenceFailure("OpenAI returned an empty response")
        return output_text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
