"""Models for mineral readings extracted from label text."""

from enum import Enum

DEFAULT_MINERAL_LABELS: dict[str, str] = {
    "bicarbonate": "Bicarbonato",
    "calcium": "Cálcio",
    "magnesium": "Magnésio",
}


class NotFound(Enum):
    """Sentinel for a mineral whose label is missing from the text."""

    NOT_FOUND = "Not found"

    def __str__(self) -> str:
        return self.value


NOT_FOUND = NotFound.NOT_FOUND

MineralValue = str | NotFound
MineralReadings = dict[str, MineralValue]


def is_found(value: MineralValue) -> bool:
    """Return True when a reading holds an extracted digit string."""
    return value is not NOT_FOUND
