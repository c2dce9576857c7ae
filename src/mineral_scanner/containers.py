"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from mineral_scanner.adapters.ollama_inference_client import HttpxOllamaInferenceClient
from mineral_scanner.adapters.opencv_capture_source import OpenCVCaptureSource
from mineral_scanner.adapters.openai_inference_client import OpenAIInferenceClient
from mineral_scanner.config import Settings, resolve_provider
from mineral_scanner.services.capture import CaptureSource
from mineral_scanner.services.extraction import MineralExtractor
from mineral_scanner.services.inference import InferenceService
from mineral_scanner.services.scan_session import ScanSessionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    capture_source: CaptureSource
    inference_service: InferenceService
    scan_session: ScanSessionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    provider = resolve_provider(resolved_settings.inference_provider)

    client: OpenAIInferenceClient | HttpxOllamaInferenceClient
    if provider == "openai":
        if not resolved_settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai provider")
        client = OpenAIInferenceClient.create(resolved_settings.openai_api_key)
        model = resolved_settings.openai_model
    else:
        client = HttpxOllamaInferenceClient.create(
            base_url=resolved_settings.ollama_base_url,
            timeout_seconds=resolved_settings.ollama_timeout_seconds,
        )
        model = resolved_settings.ollama_model

    inference_service = InferenceService(
        client=client,
        model=model,
        instruction=resolved_settings.inference_instruction,
    )
    capture_source = OpenCVCaptureSource(
        camera_index=resolved_settings.camera_index,
        width=resolved_settings.capture_width,
        height=resolved_settings.capture_height,
        jpeg_quality=resolved_settings.jpeg_quality,
    )
    scan_session = ScanSessionService(
        capture_source=capture_source,
        inference_service=inference_service,
        extractor=MineralExtractor(resolved_settings.mineral_labels),
    )

    async def close_resources() -> None:
        await scan_session.close()
        await client.close()

    return AppContainer(
        settings=resolved_settings,
        capture_source=capture_source,
        inference_service=inference_service,
        scan_session=scan_session,
        close_resources=close_resources,
    )
