"""Vision inference service for mineral water labels."""

import base64
from dataclasses import dataclass
from typing import Protocol

from mineral_scanner.domain.scan import CapturedImage

DEFAULT_INSTRUCTION = "Gere uma tabela da composição química da agua"


class InferenceFailure(Exception):
    """Raised when the inference service fails or returns unusable content."""


class InferenceClient(Protocol):
    """Interface for vision-capable text generation."""

    async def describe(
        self,
        *,
        model: str,
        image_data_url: str,
        instruction: str,
    ) -> str:
        """Return free-form text describing the image."""


@dataclass
class InferenceService:
    """Service that submits captured images with a fixed instruction."""

    client: InferenceClient
    model: str
    instruction: str = DEFAULT_INSTRUCTION

    async def describe(self, image: CapturedImage) -> str:
        """Send the image to the configured client and return its text."""
        text = await self.client.describe(
            model=self.model,
            image_data_url=_to_data_url(image),
            instruction=self.instruction,
        )
        if not isinstance(text, str) or not text.strip():
            raise InferenceFailure("Inference service returned an empty response")
        return text


def _to_data_url(image: CapturedImage) -> str:
    """Convert an image to a base64 data URL for image input."""
    encoded = base64.b64encode(image.content).decode("utf-8")
    return f"data:{image.mime_type};base64,{encoded}"


def split_data_url(data_url: str) -> str:
    """Return the base64 payload of a data URL."""
    _, _, payload = data_url.partition(",")
    return payload or data_url
