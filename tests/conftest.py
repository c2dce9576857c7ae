"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from mineral_scanner.config import Settings
from mineral_scanner.containers import AppContainer
from mineral_scanner.services.capture import (
    CaptureSource,
    CaptureStream,
    CaptureUnavailable,
)
from mineral_scanner.services.extraction import MineralExtractor
from mineral_scanner.services.inference import (
    InferenceClient,
    InferenceFailure,
    InferenceService,
)
from mineral_scanner.services.scan_session import ScanSessionService

JPEG_FRAME = b"\xff\xd8\xff\xe0frame-1"
LABEL_TEXT = "Bicarbonato: 80mg Cálcio: 30mg Magnésio: 10mg"


@dataclass
class FakeCaptureStream(CaptureStream):
    """Fake stream that hands out queued frames."""

    frames: list[bytes] = field(default_factory=lambda: [JPEG_FRAME])
    stopped: bool = False
    fail: bool = False
    error: Exception | None = None
    delay: float = 0.0
    reading: int = 0
    max_reading: int = 0
    stopped_while_reading: bool = False

    async def capture_frame(self) -> bytes:
        if self.fail:
            raise CaptureUnavailable("no frame")
        if self.error is not None:
            raise self.error
        self.reading += 1
        self.max_reading = max(self.max_reading, self.reading)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.reading -= 1
        if len(self.frames) > 1:
            return self.frames.pop(0)
        return self.frames[0]

    def stop(self) -> None:
        self.stopped_while_reading = self.reading > 0
        self.stopped = True


@dataclass
class FakeCaptureSource(CaptureSource):
    """Fake camera that records every opened stream."""

    frames: list[bytes] = field(default_factory=lambda: [JPEG_FRAME])
    denied: bool = False
    streams: list[FakeCaptureStream] = field(default_factory=list)

    async def request_stream(self) -> FakeCaptureStream:
        if self.denied:
            raise CaptureUnavailable("permission denied")
        frame = self.frames[len(self.streams) % len(self.frames)]
        stream = FakeCaptureStream(frames=[frame])
        self.streams.append(stream)
        return stream


@dataclass
class FakeInferenceClient(InferenceClient):
    """Fake inference client returning fixed text."""

    text: str = LABEL_TEXT
    calls: list[dict[str, str]] = field(default_factory=list)

    async def describe(
        self,
        *,
        model: str,
        image_data_url: str,
        instruction: str,
    ) -> str:
        self.calls.append(
            {
                "model": model,
                "image_data_url": image_data_url,
                "instruction": instruction,
            }
        )
        return self.text


@dataclass
class FailingInferenceClient(InferenceClient):
    """Fake inference client that always fails."""

    error: Exception = field(
        default_factory=lambda: InferenceFailure("service unavailable")
    )

    async def describe(
        self,
        *,
        model: str,
        image_data_url: str,
        instruction: str,
    ) -> str:
        raise self.error


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        inference_provider="ollama",
        ollama_base_url="http://ollama.test",
        auto_start_capture=False,
    )


@pytest.fixture
def capture_source() -> FakeCaptureSource:
    return FakeCaptureSource()


@pytest.fixture
def inference_client() -> FakeInferenceClient:
    return FakeInferenceClient()


@pytest.fixture
def inference_service(inference_client: FakeInferenceClient) -> InferenceService:
    return InferenceService(client=inference_client, model="llama3.2-vision")


@pytest.fixture
def scan_session(
    capture_source: FakeCaptureSource, inference_service: InferenceService
) -> ScanSessionService:
    return ScanSessionService(
        capture_source=capture_source,
        inference_service=inference_service,
        extractor=MineralExtractor(),
    )


@pytest.fixture
def container(
    settings: Settings,
    capture_source: FakeCaptureSource,
    inference_service: InferenceService,
    scan_session: ScanSessionService,
) -> AppContainer:
    async def close_resources() -> None:
        await scan_session.close()

    return AppContainer(
        settings=settings,
        capture_source=capture_source,
        inference_service=inference_service,
        scan_session=scan_session,
        close_resources=close_resources,
    )
