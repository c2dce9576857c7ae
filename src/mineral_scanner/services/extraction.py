"""Labeled-value extraction of mineral amounts from free-form text."""

import re
import unicodedata
from collections.abc import Mapping
from dataclasses import dataclass

from mineral_scanner.domain.minerals import (
    DEFAULT_MINERAL_LABELS,
    NOT_FOUND,
    MineralReadings,
)

# label, optional separator, digits, optional "mg" unit
_VALUE_PATTERN = r"\s*[:=|-]?\s*([0-9]+)(?:\s*mg)?"


@dataclass(frozen=True)
class MineralPattern:
    """Compiled matcher for one mineral field."""

    field: str
    label: str
    pattern: re.Pattern[str]

    @classmethod
    def for_label(cls, field: str, label: str) -> "MineralPattern":
        """Compile a case-insensitive matcher for a label token."""
        token = re.escape(_normalize(label))
        return cls(
            field=field,
            label=label,
            pattern=re.compile(token + _VALUE_PATTERN, re.IGNORECASE),
        )

    def search(self, text: str) -> str | None:
        """Return the first digit run following the label, if any."""
        match = self.pattern.search(text)
        if match is None:
            return None
        return match.group(1)


class MineralExtractor:
    """Applies a label table to inference text."""

    def __init__(self, labels: Mapping[str, str] | None = None) -> None:
        resolved = DEFAULT_MINERAL_LABELS if labels is None else labels
        self._patterns = tuple(
            MineralPattern.for_label(field, label) for field, label in resolved.items()
        )

    @property
    def labels(self) -> dict[str, str]:
        """Return the configured field to label table."""
        return {pattern.field: pattern.label for pattern in self._patterns}

    def extract(self, text: str) -> MineralReadings:
        """Return a value or NOT_FOUND for every configured field."""
        normalized = _normalize(text)
        readings: MineralReadings = {}
        for pattern in self._patterns:
            value = pattern.search(normalized)
            readings[pattern.field] = NOT_FOUND if value is None else value
        return readings


def extract_minerals(text: str, labels: Mapping[str, str]) -> MineralReadings:
    """Extract labeled mineral values from text using the given label table."""
    return MineralExtractor(labels).extract(text)


def _normalize(value: str) -> str:
    """Compose accents so decomposed and precomposed text compare equal."""
    return unicodedata.normalize("NFC", value)
