"""Domain models for the capture and inference workflow."""

from dataclasses import dataclass
from enum import StrEnum

from mineral_scanner.domain.minerals import MineralReadings


class Stage(StrEnum):
    """Current step of the capture, inference and extraction workflow."""

    IDLE = "idle"
    CAPTURING = "capturing"
    CAPTURED = "captured"
    PROCESSING = "processing"
    DONE = "done"


IMAGE_STAGES = frozenset({Stage.CAPTURED, Stage.PROCESSING, Stage.DONE})


@dataclass(frozen=True)
class CapturedImage:
    """Still image taken from the live camera stream."""

    content: bytes
    mime_type: str = "image/jpeg"

    @classmethod
    def from_bytes(cls, content: bytes) -> "CapturedImage":
        """Wrap encoded image bytes, sniffing the format from the header."""
        return cls(content=content, mime_type=detect_mime_type(content))


@dataclass(frozen=True)
class ScanSnapshot:
    """Read-only view of a scan session for rendering."""

    stage: Stage
    image: CapturedImage | None
    raw_text: str | None
    readings: MineralReadings | None
    notice: str | None


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
