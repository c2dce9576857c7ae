"""Camera capture contracts."""

from typing import Protocol


class CaptureUnavailable(Exception):
    """Raised when the camera is refused, missing or stops delivering frames."""


class CaptureStream(Protocol):
    """A live camera stream."""

    async def capture_frame(self) -> bytes:
        """Grab one frame and return it as an encoded image."""

    def stop(self) -> None:
        """Release the underlying camera device."""


class CaptureSource(Protocol):
    """Interface for opening camera streams."""

    async def request_stream(self) -> CaptureStream:
        """Open a live stream or raise CaptureUnavailable."""
