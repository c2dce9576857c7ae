"""Session state machine for the capture, inference and extraction flow."""

import asyncio
import logging
from dataclasses import dataclass, field

from mineral_scanner.domain.minerals import MineralReadings
from mineral_scanner.domain.scan import (
    IMAGE_STAGES,
    CapturedImage,
    ScanSnapshot,
    Stage,
)
from mineral_scanner.services.capture import (
    CaptureSource,
    CaptureStream,
    CaptureUnavailable,
)
from mineral_scanner.services.extraction import MineralExtractor
from mineral_scanner.services.inference import InferenceFailure, InferenceService

logger = logging.getLogger(__name__)

CAMERA_NOTICE = "Could not access camera. Please check permissions."


class InvalidTransition(Exception):
    """Raised when an operation is not allowed in the current stage."""

    def __init__(self, operation: str, stage: Stage) -> None:
        super().__init__(f"Cannot {operation} while {stage.value}")
        self.operation = operation
        self.stage = stage


@dataclass
class ScanSessionService:
    """Single source of truth for one capture/infer/extract cycle at a time."""

    capture_source: CaptureSource
    inference_service: InferenceService
    extractor: MineralExtractor = field(default_factory=MineralExtractor)
    stage: Stage = field(default=Stage.IDLE, init=False)
    image: CapturedImage | None = field(default=None, init=False)
    raw_text: str | None = field(default=None, init=False)
    readings: MineralReadings | None = field(default=None, init=False)
    notice: str | None = field(default=None, init=False)
    _stream: CaptureStream | None = field(default=None, init=False, repr=False)
    _cycle: int = field(default=0, init=False, repr=False)
    _frame_lock: asyncio.Lock = field(
        default_factory=asyncio.Lock, init=False, repr=False
    )

    async def start_capture(self) -> Stage:
        """Open a live camera stream and move to CAPTURING."""
        if self.stage is Stage.CAPTURING:
            return self.stage
        if self.stage is not Stage.IDLE:
            raise InvalidTransition("start capture", self.stage)
        return await self._open_stream()

    async def snapshot(self) -> CapturedImage:
        """Grab one frame, release the camera and move to CAPTURED."""
        async with self._frame_lock:
            if self.stage is not Stage.CAPTURING or self._stream is None:
                raise InvalidTransition("snapshot", self.stage)
            stream = self._stream
            try:
                frame = await stream.capture_frame()
            except Exception as exc:
                logger.warning("Failed to grab a frame", exc_info=True)
                self.stage = Stage.IDLE
                self.notice = CAMERA_NOTICE
                if isinstance(exc, CaptureUnavailable):
                    raise
                raise CaptureUnavailable(f"Failed to grab a frame: {exc}") from exc
            finally:
                self._release_stream()
            self._cycle += 1
            self.image = CapturedImage.from_bytes(frame)
            self.stage = Stage.CAPTURED
            return self.image

    async def retake(self) -> Stage:
        """Discard the current image and results and restart the camera."""
        if self.stage not in IMAGE_STAGES:
            raise InvalidTransition("retake", self.stage)
        self._cycle += 1
        self.image = None
        self.raw_text = None
        self.readings = None
        self.notice = None
        self.stage = Stage.IDLE
        return await self._open_stream()

    async def run_inference(self) -> MineralReadings | None:
        """Send the captured image for inference and extract readings."""
        if self.image is None:
            return None
        if self.stage is not Stage.CAPTURED:
            raise InvalidTransition("run inference", self.stage)

        cycle = self._cycle
        image = self.image
        self.stage = Stage.PROCESSING
        self.notice = None
        try:
            text = await self.inference_service.describe(image)
        except InferenceFailure as exc:
            self._fail_inference(cycle, str(exc))
            raise
        except Exception as exc:
            self._fail_inference(cycle, str(exc) or type(exc).__name__)
            raise InferenceFailure(str(exc) or type(exc).__name__) from exc

        if cycle != self._cycle:
            logger.info("Discarding inference result from a previous capture")
            return None
        readings = self.extractor.extract(text)
        self.raw_text = text
        self.readings = readings
        self.stage = Stage.DONE
        return readings

    async def preview_frame(self) -> bytes | None:
        """Return a live frame while capturing, else the captured image."""
        async with self._frame_lock:
            if self.stage is Stage.CAPTURING and self._stream is not None:
                return await self._stream.capture_frame()
        if self.image is not None:
            return self.image.content
        return None

    def view(self) -> ScanSnapshot:
        """Return a read-only view of the session."""
        return ScanSnapshot(
            stage=self.stage,
            image=self.image,
            raw_text=self.raw_text,
            readings=dict(self.readings) if self.readings is not None else None,
            notice=self.notice,
        )

    async def close(self) -> None:
        """Release the camera if a stream is still attached."""
        async with self._frame_lock:
            self._release_stream()
            if self.stage is Stage.CAPTURING:
                self.stage = Stage.IDLE

    async def _open_stream(self) -> Stage:
        async with self._frame_lock:
            if self.stage is Stage.CAPTURING:
                return self.stage
            try:
                stream = await self.capture_source.request_stream()
            except CaptureUnavailable:
                logger.warning("Camera unavailable", exc_info=True)
                self.stage = Stage.IDLE
                self.notice = CAMERA_NOTICE
                raise
            self._stream = stream
            self.stage = Stage.CAPTURING
            self.notice = None
            return self.stage

    def _fail_inference(self, cycle: int, message: str) -> None:
        logger.exception("Inference failed")
        if cycle != self._cycle:
            return
        self.stage = Stage.CAPTURED
        self.notice = f"Inference failed: {message}"

    def _release_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
