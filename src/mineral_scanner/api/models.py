"""Pydantic models for the session API."""

from pydantic import BaseModel

from mineral_scanner.domain.minerals import is_found
from mineral_scanner.domain.scan import ScanSnapshot, Stage


class SessionView(BaseModel):
    """Session state as seen by the presentation layer."""

    stage: Stage
    has_image: bool
    raw_text: str | None = None
    readings: dict[str, str | None] | None = None
    notice: str | None = None

    @classmethod
    def from_snapshot(cls, snapshot: ScanSnapshot) -> "SessionView":
        """Build a view, mapping NOT_FOUND readings to null."""
        readings = None
        if snapshot.readings is not None:
            readings = {
                name: value if is_found(value) else None
                for name, value in snapshot.readings.items()
            }
        return cls(
            stage=snapshot.stage,
            has_image=snapshot.image is not None,
            raw_text=snapshot.raw_text,
            readings=readings,
            notice=snapshot.notice,
        )
