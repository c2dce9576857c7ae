"""OpenCV camera adapter."""

import asyncio
import logging
from dataclasses import dataclass

import cv2

from mineral_scanner.services.capture import (
    CaptureSource,
    CaptureStream,
    CaptureUnavailable,
)

logger = logging.getLogger(__name__)


@dataclass
class OpenCVCaptureStream(CaptureStream):
    """Live stream over an opened cv2.VideoCapture."""

    camera: cv2.VideoCapture
    width: int = 640
    height: int = 480
    jpeg_quality: int = 90

    async def capture_frame(self) -> bytes:
        """Read one frame and encode it as JPEG."""
        return await asyncio.to_thread(self._grab)

    def stop(self) -> None:
        """Release the camera device."""
        self.camera.release()

    def _grab(self) -> bytes:
        ok, frame = self.camera.read()
        if not ok or frame is None:
            raise CaptureUnavailable("Camera returned no frame")
        if self.width and self.height:
            frame = cv2.resize(frame, (self.width, self.height))
        encoded_ok, buffer = cv2.imencode(
            ".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self.jpeg_quality]
        )
        if not encoded_ok:
            raise CaptureUnavailable("Failed to encode frame as JPEG")
        return buffer.tobytes()


@dataclass
class OpenCVCaptureSource(CaptureSource):
    """Opens a local camera by index."""

    camera_index: int = 0
    width: int = 640
    height: int = 480
    jpeg_quality: int = 90

    async def request_stream(self) -> OpenCVCaptureStream:
        """Open the camera or raise CaptureUnavailable."""
        camera = await asyncio.to_thread(self._open)
        logger.info("Opened camera %s", self.camera_index)
        return OpenCVCaptureStream(
            camera=camera,
            width=self.width,
            height=self.height,
            jpeg_quality=self.jpeg_quality,
        )

    def _open(self) -> cv2.VideoCapture:
        camera = cv2.VideoCapture(self.camera_index)
        if not camera.isOpened():
            camera.release()
            raise CaptureUnavailable(f"Camera {self.camera_index} is not available")
        return camera
